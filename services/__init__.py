"""
Service layer for Circle Crop.
"""

from .crop_service import CropSession

__all__ = ["CropSession"]
