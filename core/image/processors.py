"""
Image processing operations on premultiplied float32 surfaces.

Handles the drawing primitives of the pipeline:
- Surface allocation and background fill
- Affine rendering (rotate/flip)
- Window extraction with transparent padding
- Circular clip coverage and drawing through it
"""

import logging
from typing import Tuple

import cv2
import numpy as np

from core.constants import Colors, CompositorConstants

logger = logging.getLogger(__name__)


class ImageProcessors:
    """Drawing operations on (H, W, 4) premultiplied float32 surfaces."""

    @staticmethod
    def new_surface(
        width: int, height: int, color: Tuple[int, int, int, int] = Colors.TRANSPARENT
    ) -> np.ndarray:
        """
        Allocate a surface filled with an RGBA color.

        Args:
            width: Surface width in pixels
            height: Surface height in pixels
            color: Straight-alpha RGBA fill (0-255)

        Returns:
            float32 array (height, width, 4), premultiplied
        """
        r, g, b, a = (c / 255.0 for c in color)
        surface = np.empty((height, width, 4), dtype=np.float32)
        surface[...] = (r * a, g * a, b * a, a)
        return surface

    @staticmethod
    def render_transformed(
        surface: np.ndarray, matrix: np.ndarray, size: Tuple[int, int], exact: bool = False
    ) -> np.ndarray:
        """
        Draw a surface onto a new transparent surface through an affine matrix.

        Args:
            surface: Source surface (premultiplied)
            matrix: Forward 2x3 matrix between pixel indices
            size: (width, height) of the destination
            exact: Matrix maps pixels onto pixels; sample without interpolation

        Returns:
            Destination surface; area not covered by the source is transparent
        """
        width, height = size
        if width <= 0 or height <= 0:
            return np.zeros((max(height, 0), max(width, 0), 4), dtype=np.float32)

        flags = cv2.INTER_NEAREST if exact else cv2.INTER_LINEAR
        return cv2.warpAffine(
            surface,
            matrix.astype(np.float64),
            (width, height),
            flags=flags,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=(0.0, 0.0, 0.0, 0.0),
        )

    @staticmethod
    def extract_window(surface: np.ndarray, x: int, y: int, width: int, height: int) -> np.ndarray:
        """
        Copy a rectangular window out of a surface.

        The window may lie partly or wholly outside the surface; those
        pixels read as transparent.

        Args:
            surface: Source surface
            x, y: Window origin in surface pixels (may be negative)
            width, height: Window size (non-negative)

        Returns:
            New surface of shape (height, width, 4)
        """
        width, height = max(width, 0), max(height, 0)
        window = np.zeros((height, width, 4), dtype=surface.dtype)

        src_h, src_w = surface.shape[:2]
        x1, y1 = max(x, 0), max(y, 0)
        x2, y2 = min(x + width, src_w), min(y + height, src_h)

        if x2 <= x1 or y2 <= y1:
            logger.debug(f"Window {x},{y},{width}x{height} lies outside {src_w}x{src_h} surface")
            return window

        window[y1 - y : y2 - y, x1 - x : x2 - x] = surface[y1:y2, x1:x2]
        return window

    @staticmethod
    def circle_coverage(
        width: int, height: int, edge_width: float = CompositorConstants.MASK_EDGE_WIDTH
    ) -> np.ndarray:
        """
        Per-pixel coverage of the circle inscribed in a width x height rectangle.

        The circle is centred at (width/2, height/2) with radius
        min(width, height)/2. Distances are taken from pixel centres;
        coverage is 1 up to radius - edge_width, falls linearly to 0 at the
        radius and stays 0 beyond it.

        Returns:
            float32 array (height, width) in [0, 1]
        """
        radius = min(width, height) / 2.0
        ys, xs = np.ogrid[:height, :width]
        dist = np.sqrt((xs + 0.5 - width / 2.0) ** 2 + (ys + 0.5 - height / 2.0) ** 2)
        coverage = (radius - dist) / edge_width
        return np.clip(coverage, 0.0, 1.0).astype(np.float32)

    @staticmethod
    def draw_through_mask(dst: np.ndarray, src: np.ndarray, coverage: np.ndarray) -> np.ndarray:
        """
        Source-over composite src onto dst, restricted by a coverage mask.

        Both surfaces are premultiplied and the same shape; dst is modified
        in place and returned.
        """
        clipped = src * coverage[..., np.newaxis]
        dst *= 1.0 - clipped[..., 3:4]
        dst += clipped
        return dst
