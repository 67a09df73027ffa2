"""Single-image classification with ONNX models."""

__version__ = "0.0.1"
