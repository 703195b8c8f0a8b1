"""
Schemas Package

Pydantic models for data validation and serialization, shared by the
compositor (core), the settings store and the session service.
"""

from core.enums import ImageFormat, KeyScheme

# Common models (core data structures)
from .common import Point, Rect, Size

# Crop pipeline models
from .crop import CropSettings, FlipSpec, OutputSpec

# Explicitly declare public API for re-export
__all__ = [
    # Common models
    "Point",
    "Rect",
    "Size",
    # Crop models
    "CropSettings",
    "FlipSpec",
    "OutputSpec",
    # Enums (re-exported from core.enums)
    "ImageFormat",
    "KeyScheme",
]
