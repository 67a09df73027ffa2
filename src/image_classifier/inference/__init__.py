"""Inference engines and score-to-label classification."""

from image_classifier.inference.base import BaseInferenceEngine
from image_classifier.inference.classifier import (
    classify,
    softmax,
    top_k_predictions,
)
from image_classifier.inference.onnx_engine import ONNXInferenceEngine

__all__ = [
    "BaseInferenceEngine",
    "ONNXInferenceEngine",
    "classify",
    "softmax",
    "top_k_predictions",
]
