"""Pillow-backed image codec: encoded bytes <-> PixelGrid."""

from __future__ import annotations

import io
from pathlib import Path

from loguru import logger
from PIL import Image, UnidentifiedImageError

from image_classifier.errors import InvalidImageDimensions, OutputWriteFailure
from image_classifier.types import PixelGrid

# Pillow mode for each supported bytes-per-pixel value.
MODE_FOR_CHANNELS = {1: "L", 2: "LA", 3: "RGB", 4: "RGBA"}


def decode_image(data: bytes) -> PixelGrid:
    """Decode an encoded image into an RGB or RGBA pixel grid.

    Images carrying transparency keep their alpha channel; every other mode
    (palette, grayscale, CMYK, ...) is converted to RGB.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            has_alpha = img.mode in ("RGBA", "LA") or "transparency" in img.info
            image = img.convert("RGBA" if has_alpha else "RGB")
    except Image.DecompressionBombError as err:
        raise InvalidImageDimensions(f"image is too large to decode: {err}") from err
    except (UnidentifiedImageError, OSError, ValueError) as err:
        raise InvalidImageDimensions(f"image could not be decoded: {err}") from err

    width, height = image.size
    if width < 1 or height < 1:
        raise InvalidImageDimensions(f"decoded image is {width}x{height}")
    logger.debug(f"Decoded {width}x{height} {image.mode} image")
    return pil_to_grid(image)


def pil_to_grid(image: Image.Image) -> PixelGrid:
    channels = len(image.getbands())
    return PixelGrid(
        width=image.width,
        height=image.height,
        bytes_per_pixel=channels,
        data=image.tobytes(),
    )


def grid_to_pil(grid: PixelGrid) -> Image.Image:
    mode = MODE_FOR_CHANNELS[grid.bytes_per_pixel]
    return Image.frombytes(mode, grid.size, grid.data)


def save_pixel_grid(grid: PixelGrid, path: str | Path) -> Path:
    """Write a grid to disk; the format follows the file extension.

    Raises:
        OutputWriteFailure: Unknown extension or the path is not writable.
    """
    path = Path(path)
    image = grid_to_pil(grid)
    if path.suffix.lower() in (".jpg", ".jpeg") and image.mode != "RGB":
        image = image.convert("RGB")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        image.save(path)
    except (OSError, ValueError) as err:
        raise OutputWriteFailure(f"could not save image to {path}: {err}") from err
    logger.debug(f"Saved {grid.width}x{grid.height} grid to {path}")
    return path
