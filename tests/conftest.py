"""Shared pytest fixtures for image_classifier tests."""

import io
from collections.abc import Callable
from pathlib import Path

import pytest
from PIL import Image

LABELS = ["tench", "goldfish", "great white shark", "tiger shark", "hammerhead"]


def _encode(image: Image.Image, fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture()
def encode_image() -> Callable[..., bytes]:
    """Encode a PIL image to bytes (PNG unless a format is given)."""
    return _encode


@pytest.fixture()
def labels() -> list[str]:
    return list(LABELS)


@pytest.fixture()
def solid_image_bytes() -> bytes:
    """640x640 solid-color PNG, already at the default model input size."""
    return _encode(Image.new("RGB", (640, 640), color=(200, 30, 90)))


@pytest.fixture()
def assets_dir(tmp_path: Path) -> Path:
    """Asset directory laid out like the default configuration expects.

    - imagenet_classes.txt: the five LABELS, CRLF terminated
    - yolov8m-cls.onnx: placeholder bytes (tests stub out the engine)
    - bus.jpg: a portrait JPEG that needs resizing and cropping
    """
    root = tmp_path / "assets"
    root.mkdir()
    (root / "imagenet_classes.txt").write_bytes("\r\n".join(LABELS).encode() + b"\r\n")
    (root / "yolov8m-cls.onnx").write_bytes(b"not-a-real-model")
    (root / "bus.jpg").write_bytes(
        _encode(Image.new("RGB", (810, 1080), color=(40, 120, 220)), "JPEG")
    )
    return root
