"""
Grayscale image buffer.

A flat, row-major sequence of 8-bit intensity samples with explicit width and
height. Row accessors return views over the underlying bytes, never copies.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, cast

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from errors import BufferShapeError


@dataclass(frozen=True)
class GrayImage:
    pixels: bytes
    width: int
    height: int

    def __post_init__(self) -> None:
        # bytes(int) would allocate zeros instead of copying samples
        if isinstance(self.pixels, (int, str)):
            raise BufferShapeError(
                f"pixels must be a sequence of 8-bit samples, got {type(self.pixels).__name__}"
            )
        try:
            # frozen copy: later edits to a caller's bytearray/list can't leak in
            object.__setattr__(self, "pixels", bytes(self.pixels))
        except (TypeError, ValueError) as exc:
            raise BufferShapeError(f"pixels must be 8-bit samples (0..255): {exc}") from exc
        if self.width <= 0 or self.height <= 0:
            raise BufferShapeError(
                f"Buffer dimensions must be positive, got {self.width}x{self.height}"
            )
        if len(self.pixels) != self.width * self.height:
            raise BufferShapeError(
                f"Buffer holds {len(self.pixels)} samples, "
                f"expected {self.width}x{self.height}={self.width * self.height}"
            )

    @classmethod
    def from_pil(cls, image: Image.Image) -> "GrayImage":
        """Wrap an "L" mode Pillow image."""
        if image.mode != "L":
            raise BufferShapeError(f"Expected an 'L' mode image, got {image.mode!r}")
        w, h = image.size
        return cls(image.tobytes(), w, h)

    def row(self, y: int) -> memoryview:
        if not 0 <= y < self.height:
            raise IndexError(f"Row {y} out of range for height {self.height}")
        start = y * self.width
        return memoryview(self.pixels)[start : start + self.width]

    def rows(self) -> Iterator[memoryview]:
        for y in range(self.height):
            yield self.row(y)

    def pixel(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) out of range")
        return self.pixels[y * self.width + x]

    def to_array(self) -> NDArray[np.uint8]:
        """Read-only (height, width) uint8 view over the buffer."""
        # np.frombuffer over immutable bytes is already non-writeable
        arr = np.frombuffer(self.pixels, dtype=np.uint8)
        return cast(NDArray[np.uint8], arr.reshape(self.height, self.width))
