"""Shorter-side resize and center crop for pixel grids."""

from __future__ import annotations

from loguru import logger
from PIL import Image

from image_classifier.errors import InvalidImageDimensions
from image_classifier.io.image import grid_to_pil, pil_to_grid
from image_classifier.types import PixelGrid


def scaled_size(
    source_width: int, source_height: int, target_width: int, target_height: int
) -> tuple[int, int]:
    """Size after scaling the shorter source side onto the shorter target side.

    Both dimensions are truncated toward zero.  Integer arithmetic keeps the
    shorter side exact: ``min(result) == min(target_width, target_height)``.
    """
    short_target = min(target_width, target_height)
    short_source = min(source_width, source_height)
    return (
        source_width * short_target // short_source,
        source_height * short_target // short_source,
    )


def crop_offsets(
    scaled_width: int, scaled_height: int, target_width: int, target_height: int
) -> tuple[int, int]:
    """Top-left corner ``(left, top)`` of a centered target window."""
    left = max(0, (scaled_width - target_width) // 2)
    top = max(0, (scaled_height - target_height) // 2)
    return left, top


def resize_and_crop(
    pixels: PixelGrid,
    target_width: int,
    target_height: int,
    resample: Image.Resampling = Image.Resampling.BILINEAR,
) -> PixelGrid:
    """Scale ``pixels`` so its shorter side fits the target, then center-crop.

    A grid already at the target size is returned as is.  The result always
    has exactly ``target_width x target_height`` pixels and the input's
    channel layout.

    Raises:
        InvalidImageDimensions: Non-positive target, or the scaled image is
            smaller than the target on one axis (non-square targets with
            square-ish sources).
    """
    if target_width <= 0 or target_height <= 0:
        raise InvalidImageDimensions(
            f"target size must be positive, got {target_width}x{target_height}"
        )
    if pixels.size == (target_width, target_height):
        return pixels

    new_width, new_height = scaled_size(
        pixels.width, pixels.height, target_width, target_height
    )
    if new_width < target_width or new_height < target_height:
        raise InvalidImageDimensions(
            f"{pixels.width}x{pixels.height} scales to {new_width}x{new_height}, "
            f"too small to crop {target_width}x{target_height}"
        )
    left, top = crop_offsets(new_width, new_height, target_width, target_height)
    logger.debug(
        f"Resize {pixels.width}x{pixels.height} -> {new_width}x{new_height}, "
        f"crop at ({left}, {top})"
    )

    scaled = grid_to_pil(pixels).resize((new_width, new_height), resample=resample)
    cropped = scaled.crop((left, top, left + target_width, top + target_height))
    return pil_to_grid(cropped)
