"""Classification result schema.

One annotation per classified image with its top-K predictions sorted by
confidence.
"""

from __future__ import annotations

from pydantic import BaseModel

from image_classifier.schemas.info import AnnotationInfo


class ClassificationPrediction(BaseModel, frozen=True):
    """A single classification prediction."""

    class_id: int
    label: str
    confidence: float


class ClassificationAnnotation(BaseModel):
    """Full result for a single image.

    Self-contained: includes the category mapping so each annotation
    file can be interpreted independently.
    """

    filename: str
    categories: dict[int, str]
    info: AnnotationInfo
    predictions: list[ClassificationPrediction]
