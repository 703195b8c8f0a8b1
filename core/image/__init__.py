"""
Image processing utilities - modular architecture.

This package provides the building blocks of the crop pipeline:
- converters: Source reading, decode/encode, alpha premultiplication
- geometry: Angle normalization, rotated bounding boxes, render matrices
- processors: Surface drawing (render, extract, circular clip)
- raster: Immutable decoded bitmap
"""

from core.image.converters import ImageConverters
from core.image.geometry import ImageGeometry
from core.image.processors import ImageProcessors
from core.image.raster import Raster

__all__ = ["ImageConverters", "ImageGeometry", "ImageProcessors", "Raster"]
