"""
Compositor - rotate, crop and circle-mask an image, then encode it.

Pipeline for one call:
1. validate the crop rectangle
2. decode the source to a Raster
3. render the rotated/flipped raster onto its rotated bounding box
4. extract the crop window from that surface
5. draw the window through an inscribed circular clip
   (onto white first when the output format has no alpha)
6. encode and wrap the bytes in a releasable EncodedImage

Every surface is local to the call; only the EncodedImage outlives it.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Union

import numpy as np

from core.constants import Colors, ErrorMessages
from core.encoded_image import EncodedImage
from core.exceptions import InvalidRectError
from core.image.converters import ImageConverters
from core.image.geometry import ImageGeometry
from core.image.processors import ImageProcessors
from core.image.raster import Raster
from core.object_urls import ObjectURLRegistry, get_default_registry
from core.utils.decorators import timer
from core.utils.params_processor import prepare_params
from schemas import FlipSpec, OutputSpec, Rect

logger = logging.getLogger(__name__)

RectLike = Union[Rect, Dict[str, Any]]
FlipLike = Optional[Union[FlipSpec, Dict[str, Any]]]
OutputLike = Optional[Union[OutputSpec, Dict[str, Any]]]


class Compositor:
    """
    Stateless crop pipeline.

    The only thing a compositor holds is the registry its results are
    published to, so one instance can serve concurrent calls.
    """

    def __init__(
        self,
        registry: Optional[ObjectURLRegistry] = None,
        background=Colors.FLATTEN_BACKGROUND,
    ):
        """
        Initialize compositor.

        Args:
            registry: Registry for result handles (process default if None)
            background: RGBA fill behind the circle for formats without alpha
        """
        self.registry = registry if registry is not None else get_default_registry()
        self.background = background

    def composite(
        self,
        source: Any,
        rect: RectLike,
        rotation: float = 0.0,
        flip: FlipLike = None,
        output: OutputLike = None,
    ) -> EncodedImage:
        """
        Produce the circular crop of a source image.

        Args:
            source: Image bytes, data URI, blob URL, file path/URL,
                EncodedImage or Raster
            rect: Crop rectangle in rotated-canvas coordinates
            rotation: Rotation in degrees
            flip: Axis mirroring (none by default)
            output: Encoding format and quality (PNG by default)

        Returns:
            EncodedImage the caller must release

        Raises:
            InvalidRectError: Non-positive or non-finite rectangle
            DecodeError: Source unreadable or unsupported
            EncodeError: Empty result or encoder failure
        """
        rect = self.validate_rect(rect)
        flip = prepare_params(flip, FlipSpec)
        output = prepare_params(output, OutputSpec)

        with timer("composite") as t:
            raster = self.decode(source)
            masked = self.render(raster, rect, rotation, flip, output)
            data = ImageConverters.encode(masked, output)

        return self._publish(data, masked, output, t["ms"])

    async def composite_async(
        self,
        source: Any,
        rect: RectLike,
        rotation: float = 0.0,
        flip: FlipLike = None,
        output: OutputLike = None,
    ) -> EncodedImage:
        """
        Same as ``composite``, yielding to the event loop while decoding and
        while encoding.
        """
        rect = self.validate_rect(rect)
        flip = prepare_params(flip, FlipSpec)
        output = prepare_params(output, OutputSpec)

        with timer("composite_async") as t:
            raster = await asyncio.to_thread(self.decode, source)
            masked = self.render(raster, rect, rotation, flip, output)
            data = await asyncio.to_thread(ImageConverters.encode, masked, output)

        return self._publish(data, masked, output, t["ms"])

    @staticmethod
    def validate_rect(rect: RectLike) -> Rect:
        """
        Check a crop rectangle before any work is done.

        Raises:
            InvalidRectError: If the size is not positive or a value is not finite
        """
        if isinstance(rect, dict):
            try:
                rect = Rect.from_dict(rect)
            except (TypeError, ValueError) as e:
                raise InvalidRectError(rect, message=f"Invalid crop rectangle {rect}: {e}") from e

        if not rect.is_finite:
            raise InvalidRectError(rect, message=ErrorMessages.RECT_NOT_FINITE.format(rect=rect.to_dict()))
        if not rect.has_positive_size:
            raise InvalidRectError(rect)
        return rect

    def decode(self, source: Any) -> Raster:
        """Decode a source into a Raster (Rasters pass through)."""
        if isinstance(source, Raster):
            return source
        data = ImageConverters.source_to_bytes(source, self.registry)
        return Raster(ImageConverters.decode_rgba(data))

    def render(
        self,
        raster: Raster,
        rect: Rect,
        rotation: float = 0.0,
        flip: Optional[FlipSpec] = None,
        output: Optional[OutputSpec] = None,
    ) -> np.ndarray:
        """
        Run the drawing steps without encoding.

        Returns:
            Masked uint8 RGBA pixels (straight alpha) of the rect's pixel size
        """
        flip = flip or FlipSpec()
        output = output or OutputSpec()

        rotated = self.render_rotated(raster, rotation, flip)
        x, y, width, height = rect.to_pixels()
        window = ImageProcessors.extract_window(rotated, x, y, width, height)
        del rotated

        masked = self.apply_circle_mask(window, flatten=not output.format.supports_alpha)
        return ImageConverters.unpremultiply(masked)

    @staticmethod
    def render_rotated(raster: Raster, rotation: float, flip: FlipSpec) -> np.ndarray:
        """
        Draw the raster rotated and flipped about its centre onto a surface
        the size of its rotated bounding box.

        Returns:
            Premultiplied float32 surface
        """
        bbox = ImageGeometry.rotate_size(raster.width, raster.height, rotation)
        size = ImageGeometry.canvas_size(raster.width, raster.height, rotation)

        matrix = ImageGeometry.render_matrix(raster.width, raster.height, rotation, flip, bbox)
        matrix, exact = ImageGeometry.snap_matrix(ImageGeometry.to_pixel_index_matrix(matrix))

        source = ImageConverters.premultiply(raster.pixels)
        logger.debug(
            f"Rendering {raster.width}x{raster.height} at {rotation} deg "
            f"(flip h={flip.horizontal} v={flip.vertical}) onto {size[0]}x{size[1]}"
            f"{' exact' if exact else ''}"
        )
        return ImageProcessors.render_transformed(source, matrix, size, exact=exact)

    def apply_circle_mask(self, window: np.ndarray, flatten: bool = False) -> np.ndarray:
        """
        Draw a window through its inscribed circle onto a fresh surface.

        Args:
            window: Premultiplied surface cut to the crop size
            flatten: Fill the surface with the background before clipping

        Returns:
            New premultiplied surface of the same size
        """
        height, width = window.shape[:2]
        fill = self.background if flatten else Colors.TRANSPARENT
        surface = ImageProcessors.new_surface(width, height, fill)
        coverage = ImageProcessors.circle_coverage(width, height)
        return ImageProcessors.draw_through_mask(surface, window, coverage)

    def _publish(self, data: bytes, masked: np.ndarray, output: OutputSpec, elapsed_ms: float) -> EncodedImage:
        height, width = masked.shape[:2]
        encoded = EncodedImage(
            data=data,
            format=output.format,
            width=width,
            height=height,
            registry=self.registry,
            processing_time_ms=elapsed_ms,
        )
        logger.info(
            f"Composited {width}x{height} {output.mime_type} "
            f"({len(data)} bytes) in {elapsed_ms:.1f} ms"
        )
        return encoded


def composite(
    source: Any,
    rect: RectLike,
    rotation: float = 0.0,
    flip: FlipLike = None,
    output: OutputLike = None,
    registry: Optional[ObjectURLRegistry] = None,
) -> EncodedImage:
    """Module-level shortcut for ``Compositor(registry).composite(...)``."""
    return Compositor(registry).composite(source, rect, rotation, flip, output)


async def composite_async(
    source: Any,
    rect: RectLike,
    rotation: float = 0.0,
    flip: FlipLike = None,
    output: OutputLike = None,
    registry: Optional[ObjectURLRegistry] = None,
) -> EncodedImage:
    """Module-level shortcut for ``Compositor(registry).composite_async(...)``."""
    return await Compositor(registry).composite_async(source, rect, rotation, flip, output)
