"""Per-channel normalization into a planar float tensor."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from image_classifier.config import IMAGENET_MEAN, IMAGENET_STD
from image_classifier.errors import UnsupportedPixelFormat
from image_classifier.types import NormalizedTensor, PixelGrid


def build_tensor(
    pixels: PixelGrid,
    mean: Sequence[float] = IMAGENET_MEAN,
    std: Sequence[float] = IMAGENET_STD,
) -> NormalizedTensor:
    """Convert RGB(A) pixels to a read-only float32 tensor of shape (1, 3, H, W).

    Each channel ``c`` becomes ``(byte / 255 - mean[c]) / std[c]``.  Flattened,
    the tensor holds every R value in row-major order, then every G value,
    then every B value.  Alpha is dropped.

    Raises:
        UnsupportedPixelFormat: The grid has fewer than three channels.
    """
    if pixels.bytes_per_pixel < 3:
        raise UnsupportedPixelFormat(
            f"expected at least 3 channels per pixel, got {pixels.bytes_per_pixel}"
        )

    # Rows are sliced with the grid's own stride, so any width works.
    rgb = pixels.to_array()[:, :, :3].astype(np.float32) / np.float32(255.0)
    normalized = (rgb - np.asarray(mean, dtype=np.float32)) / np.asarray(
        std, dtype=np.float32
    )
    tensor = np.ascontiguousarray(normalized.transpose(2, 0, 1))[np.newaxis]
    tensor.flags.writeable = False
    return tensor
