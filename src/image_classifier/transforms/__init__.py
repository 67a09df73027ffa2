"""Image-to-tensor preprocessing.

Geometry (shorter-side resize followed by a center crop) and per-channel
normalization into the planar ``(1, 3, H, W)`` layout classification
models expect.
"""

from image_classifier.transforms.geometry import (
    crop_offsets,
    resize_and_crop,
    scaled_size,
)
from image_classifier.transforms.normalize import build_tensor

__all__ = [
    "build_tensor",
    "crop_offsets",
    "resize_and_crop",
    "scaled_size",
]
