"""
Immutable decoded bitmap.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from PIL import Image


@dataclass(frozen=True)
class Raster:
    """
    Decoded RGBA image.

    Fields:
        pixels: Read-only uint8 array of shape (height, width, 4), straight alpha.
    """

    pixels: np.ndarray

    def __post_init__(self):
        pixels = np.asarray(self.pixels)
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Raster needs (height, width, 4) pixels, got {pixels.shape}")
        if pixels.dtype != np.uint8:
            raise ValueError(f"Raster needs uint8 pixels, got {pixels.dtype}")
        # Own a private copy so callers cannot mutate it through their reference
        pixels = pixels.copy()
        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        """RGBA at (x, y); transparent black outside the raster."""
        if 0 <= x < self.width and 0 <= y < self.height:
            r, g, b, a = self.pixels[y, x]
            return int(r), int(g), int(b), int(a)
        return (0, 0, 0, 0)

    @classmethod
    def from_pil(cls, image: Image.Image) -> "Raster":
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(np.array(image))

    @classmethod
    def from_bytes(cls, data: bytes) -> "Raster":
        """Decode encoded image bytes (raises DecodeError)."""
        from core.image.converters import ImageConverters

        return cls(ImageConverters.decode_rgba(data))

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.array(self.pixels))
