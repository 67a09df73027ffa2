"""Data contracts shared between the pipeline stages."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field, model_validator

# Float32 tensor of shape (1, 3, H, W), planar channel-major.
NormalizedTensor = NDArray[np.float32]

# Named output tensors returned by an inference engine.
EngineOutputs = dict[str, NDArray[np.float32]]


class PixelGrid(BaseModel, frozen=True):
    """Decoded image as a row-major buffer of interleaved channel bytes.

    ``data`` holds ``height`` rows of ``width * bytes_per_pixel`` bytes each,
    channels ordered R, G, B[, A].  Derived grids are always new buffers.
    """

    width: int = Field(gt=0)
    height: int = Field(gt=0)
    bytes_per_pixel: int = Field(ge=1, le=4)
    data: bytes

    @model_validator(mode="after")
    def _buffer_matches_geometry(self) -> "PixelGrid":
        expected = self.width * self.height * self.bytes_per_pixel
        if len(self.data) != expected:
            raise ValueError(
                f"buffer holds {len(self.data)} bytes, expected {expected} "
                f"for {self.width}x{self.height}x{self.bytes_per_pixel}"
            )
        return self

    @property
    def stride(self) -> int:
        """Bytes per row."""
        return self.width * self.bytes_per_pixel

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def to_array(self) -> NDArray[np.uint8]:
        """Read-only ``(height, width, bytes_per_pixel)`` view of the buffer."""
        return np.frombuffer(self.data, dtype=np.uint8).reshape(
            self.height, self.width, self.bytes_per_pixel
        )

    @classmethod
    def from_array(cls, array: NDArray[np.uint8]) -> "PixelGrid":
        """Build a grid from an ``(H, W)`` or ``(H, W, C)`` uint8 array."""
        if array.ndim == 2:
            array = array[:, :, np.newaxis]
        height, width, channels = array.shape
        return cls(
            width=width,
            height=height,
            bytes_per_pixel=channels,
            data=np.ascontiguousarray(array, dtype=np.uint8).tobytes(),
        )
