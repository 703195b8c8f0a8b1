"""
Crop pipeline models.

This module contains models for the compositor inputs and for the
persisted crop settings:
- FlipSpec: axis mirroring about the image centre
- OutputSpec: encoding format and quality
- CropSettings: the crop widget state saved per image
"""

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.constants import CompositorConstants, StorageConstants
from core.enums import ImageFormat

from .common import Point, Rect


class FlipSpec(BaseModel):
    """Independent horizontal/vertical mirroring"""

    horizontal: bool = False
    vertical: bool = False

    @property
    def is_identity(self) -> bool:
        return not (self.horizontal or self.vertical)

    @property
    def scale(self) -> Tuple[float, float]:
        """Canvas scale factors for the flip."""
        return (-1.0 if self.horizontal else 1.0, -1.0 if self.vertical else 1.0)


class OutputSpec(BaseModel):
    """
    Output encoding parameters.

    ``quality`` is a 0-1 fraction and only affects lossy formats.
    Unrecognized format strings fall back to PNG.
    """

    format: ImageFormat = Field(default=ImageFormat.PNG, description="Output encoding")
    quality: float = Field(
        default=CompositorConstants.DEFAULT_QUALITY,
        gt=0.0,
        le=1.0,
        description="Encoder quality for lossy formats (0, 1]",
    )

    @field_validator("format", mode="before")
    @classmethod
    def _parse_format(cls, value):
        return ImageFormat.parse(value)

    @property
    def mime_type(self) -> str:
        return self.format.value

    @property
    def encoder_quality(self) -> int:
        """Quality on the 1-100 scale used by Pillow's lossy encoders."""
        return max(
            CompositorConstants.MIN_JPEG_QUALITY,
            min(CompositorConstants.MAX_JPEG_QUALITY, round(self.quality * 100)),
        )


class CropSettings(BaseModel):
    """
    Crop widget state persisted per image.

    Serialized with the widget's own keys
    (``crop``, ``zoom``, ``rotation``, ``croppedAreaPixels``).
    """

    model_config = ConfigDict(populate_by_name=True)

    crop: Point = Field(default_factory=Point)
    zoom: float = StorageConstants.DEFAULT_ZOOM
    rotation: float = StorageConstants.DEFAULT_ROTATION
    cropped_area_pixels: Optional[Rect] = Field(default=None, alias="croppedAreaPixels")
