"""
Geometric calculations for the rotate/flip render step.

All transforms follow 2D canvas conventions: y points down, positive
angles rotate clockwise on screen, and continuous coordinates put pixel
(i, j) at the unit square [i, i+1) x [j, j+1).
"""

import math
from typing import Tuple

import numpy as np

from core.constants import CompositorConstants
from schemas import FlipSpec, Size


class ImageGeometry:
    """Angle normalization, rotated bounding boxes and render matrices."""

    @staticmethod
    def normalize_angle(degrees: float) -> float:
        """
        Normalize an angle to [0, 360).

        Raises:
            ValueError: If the angle is NaN or infinite
        """
        degrees = float(degrees)
        if not math.isfinite(degrees):
            raise ValueError(f"Rotation must be a finite number of degrees, got {degrees}")
        full_turn = CompositorConstants.FULL_TURN_DEGREES
        angle = math.fmod(degrees, full_turn)
        if angle < 0:
            angle += full_turn
        # -1e-20 + 360 rounds to 360
        if angle >= full_turn:
            angle = 0.0
        return angle

    @staticmethod
    def get_radian_angle(degrees: float) -> float:
        """Convert degrees to radians after normalizing to one turn."""
        return math.radians(ImageGeometry.normalize_angle(degrees))

    @staticmethod
    def rotate_size(width: float, height: float, degrees: float) -> Size:
        """
        Axis-aligned bounding box of a width x height rectangle rotated by degrees.

        Example:
            >>> ImageGeometry.rotate_size(100, 50, 90)
            >>> # Size(width=50.0, height=100.0) within floating error
        """
        theta = ImageGeometry.get_radian_angle(degrees)
        cos_t = abs(math.cos(theta))
        sin_t = abs(math.sin(theta))
        return Size(
            width=cos_t * width + sin_t * height,
            height=sin_t * width + cos_t * height,
        )

    @staticmethod
    def canvas_size(width: int, height: int, degrees: float) -> Tuple[int, int]:
        """Whole-pixel surface size that holds the rotated image."""
        bbox = ImageGeometry.rotate_size(width, height, degrees)
        return bbox.to_pixels(CompositorConstants.SNAP_TOLERANCE)

    @staticmethod
    def render_matrix(width: int, height: int, degrees: float, flip: FlipSpec, bbox: Size) -> np.ndarray:
        """
        Forward 2x3 affine matrix in continuous canvas coordinates.

        Composes translate(bbox/2), rotate(theta), scale(flip),
        translate(-width/2, -height/2), applied to the source in reverse order.

        Args:
            width: Source width
            height: Source height
            degrees: Rotation angle
            flip: Axis mirroring
            bbox: Rotated bounding box (its centre is the canvas pivot)

        Returns:
            float64 array of shape (2, 3)
        """
        theta = ImageGeometry.get_radian_angle(degrees)
        cos_t, sin_t = math.cos(theta), math.sin(theta)
        sx, sy = flip.scale

        linear = np.array([[cos_t * sx, -sin_t * sy], [sin_t * sx, cos_t * sy]], dtype=np.float64)
        pivot = np.array([bbox.width / 2.0, bbox.height / 2.0])
        offset = pivot - linear @ np.array([width / 2.0, height / 2.0])
        return np.hstack([linear, offset.reshape(2, 1)])

    @staticmethod
    def to_pixel_index_matrix(matrix: np.ndarray) -> np.ndarray:
        """
        Re-express a continuous-coordinate matrix between pixel indices.

        OpenCV samples at integer pixel centres, the canvas at half-integers,
        so the transform is conjugated by a half-pixel shift.
        """
        linear = matrix[:, :2]
        half = np.array([0.5, 0.5])
        offset = matrix[:, 2] + linear @ half - half
        return np.hstack([linear, offset.reshape(2, 1)])

    @staticmethod
    def snap_matrix(matrix: np.ndarray, tolerance: float = CompositorConstants.SNAP_TOLERANCE) -> Tuple[np.ndarray, bool]:
        """
        Round a matrix to integers if every entry is within tolerance of one.

        Returns:
            (matrix, is_integral). Integral matrices map pixels onto pixels,
            so they can be applied without resampling.
        """
        rounded = np.rint(matrix)
        if np.all(np.abs(matrix - rounded) <= tolerance):
            return rounded, True
        return matrix, False
