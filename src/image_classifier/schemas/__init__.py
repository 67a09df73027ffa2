"""Classification result schemas."""

from image_classifier.schemas.annotation import (
    ClassificationAnnotation,
    ClassificationPrediction,
)
from image_classifier.schemas.info import AnnotationInfo

__all__ = [
    "AnnotationInfo",
    "ClassificationAnnotation",
    "ClassificationPrediction",
]
