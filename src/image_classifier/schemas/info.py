"""Annotation metadata info schema."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class AnnotationInfo(BaseModel):
    """Model and image metadata for an annotation."""

    onnx_file: str
    image_width: int | None = None
    image_height: int | None = None
    input_width: int
    input_height: int
    created_at: str = Field(default_factory=lambda: datetime.now(tz=UTC).isoformat())
