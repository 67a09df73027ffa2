"""Pydantic frozen configuration models for image_classifier."""

from pathlib import PurePath

from pydantic import BaseModel, Field, field_validator

IMAGENET_MEAN = (0.485, 0.456, 0.406)
IMAGENET_STD = (0.229, 0.224, 0.225)


class ClassifierConfig(BaseModel, frozen=True):
    """Configuration for a single classification run.

    All fields are validated at construction time. Frozen — no mutation after creation.

    ``assets_dir`` is either a filesystem directory or ``package://<module>[/<subdir>]``
    to read resources shipped inside an installed package.
    """

    assets_dir: str = "assets"
    onnx_file: str = "yolov8m-cls.onnx"
    labels_file: str = "imagenet_classes.txt"
    image_file: str = "bus.jpg"
    target_width: int = Field(default=640, gt=0)
    target_height: int = Field(default=640, gt=0)
    input_name: str = "images"
    output_name: str = "output0"
    mean: tuple[float, float, float] = IMAGENET_MEAN
    std: tuple[float, float, float] = IMAGENET_STD
    top_k: int = Field(default=1, ge=1)
    inference_timeout: float | None = Field(default=None, gt=0)
    output_dir: str | None = None
    debug_dump_path: str | None = None
    log_level: str = "WARNING"

    @field_validator("image_file")
    @classmethod
    def _image_file_has_extension(cls, value: str) -> str:
        if not PurePath(value).suffix:
            raise ValueError(f"image file '{value}' has no extension")
        return value

    @field_validator("std")
    @classmethod
    def _std_positive(cls, value: tuple[float, float, float]) -> tuple[float, ...]:
        if any(s <= 0 for s in value):
            raise ValueError(f"std values must be positive, got {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()
