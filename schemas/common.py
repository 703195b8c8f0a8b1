"""
Common geometric models shared by the compositor, the settings store and
the session service.
"""

import math
from typing import Any, Dict, Tuple

from pydantic import BaseModel, Field


class Point(BaseModel):
    """2D point (crop offset reported by the crop widget)"""

    x: float = 0.0
    y: float = 0.0


class Size(BaseModel):
    """Width/height pair; fractional for rotated bounding boxes"""

    width: float
    height: float

    def to_pixels(self, tolerance: float = 0.0) -> Tuple[int, int]:
        """Whole pixel size, flooring unless within tolerance of the next integer."""
        return (
            int(math.floor(self.width + tolerance)),
            int(math.floor(self.height + tolerance)),
        )


class Rect(BaseModel):
    """
    Crop rectangle in the coordinate space of the rotated canvas.

    Coordinates may be negative or lie beyond the canvas; only the size is
    constrained, and that check belongs to the compositor so that it can
    report ``InvalidRectError`` rather than a validation error.
    """

    x: float = Field(..., description="Left edge")
    y: float = Field(..., description="Top edge")
    width: float = Field(..., description="Width")
    height: float = Field(..., description="Height")

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary in the crop widget's shape."""
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rect":
        """Create Rect from dictionary; accepts ``w``/``h`` shorthands."""
        return cls(
            x=float(data.get("x", 0)),
            y=float(data.get("y", 0)),
            width=float(data.get("width", data.get("w", 0))),
            height=float(data.get("height", data.get("h", 0))),
        )

    @property
    def x2(self) -> float:
        """Get right edge coordinate."""
        return self.x + self.width

    @property
    def y2(self) -> float:
        """Get bottom edge coordinate."""
        return self.y + self.height

    @property
    def center_point(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.x, self.y, self.width, self.height))

    @property
    def has_positive_size(self) -> bool:
        return self.width > 0 and self.height > 0

    def to_pixels(self) -> Tuple[int, int, int, int]:
        """
        Integer pixel window (x, y, width, height).

        Values are truncated toward zero, the way a 2D canvas converts
        fractional arguments to pixel reads.
        """
        return int(self.x), int(self.y), int(self.width), int(self.height)
