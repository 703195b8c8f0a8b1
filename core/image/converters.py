"""
Image format conversion utilities.

Handles conversions between the representations the pipeline meets:
- Image sources (bytes, data URIs, blob URLs, file paths) to bytes
- Encoded bytes to RGBA NumPy arrays (decode)
- Straight alpha to premultiplied float surfaces and back
- RGBA arrays to PNG/JPEG/WebP bytes (encode)
"""

import base64
import binascii
import io
import logging
import re
from pathlib import Path
from typing import Any, Optional
from urllib.parse import unquote, unquote_to_bytes, urlparse
from urllib.request import url2pathname

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from core.constants import Colors, CompositorConstants, ErrorMessages, ObjectURLConstants
from core.exceptions import DecodeError, EncodeError
from core.object_urls import ObjectURLRegistry
from schemas import OutputSpec

logger = logging.getLogger(__name__)

_URL_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")


def _describe(source: Any) -> str:
    """Short, log-friendly description of a source."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        return f"<{len(source)} bytes>"
    text = str(source)
    return text if len(text) <= 64 else f"{text[:61]}..."


class ImageConverters:
    """Utilities for converting between image representations."""

    @staticmethod
    def decode_data_uri(uri: str) -> bytes:
        """
        Decode a ``data:`` URI to bytes.

        Args:
            uri: data URI, base64 or percent-encoded

        Returns:
            Payload bytes

        Raises:
            DecodeError: If the URI is malformed
        """
        header, sep, payload = uri.partition(",")
        if not sep:
            raise DecodeError(_describe(uri), "missing ',' in data URI")
        try:
            if header.lower().endswith(";base64"):
                return base64.b64decode(payload)
            return unquote_to_bytes(payload)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(_describe(uri), e) from e

    @staticmethod
    def bytes_to_data_uri(data: bytes, mime_type: str) -> str:
        """Encode bytes as a base64 ``data:`` URI."""
        return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"

    @staticmethod
    def source_to_bytes(source: Any, registry: Optional[ObjectURLRegistry] = None) -> bytes:
        """
        Read an image source into memory.

        Args:
            source: bytes, ``data:`` URI, ``blob:`` URL, ``file://`` URL,
                filesystem path, or an object with a ``data`` bytes attribute
                (EncodedImage)
            registry: Registry used to dereference ``blob:`` URLs

        Returns:
            Encoded image bytes

        Raises:
            DecodeError: If the source cannot be read
        """
        if isinstance(source, (bytes, bytearray, memoryview)):
            return bytes(source)

        data = getattr(source, "data", None)
        if isinstance(data, bytes):
            return data

        if isinstance(source, Path):
            return ImageConverters._read_file(source)

        if not isinstance(source, str):
            raise DecodeError(
                _describe(source), f"unsupported source type {type(source).__name__}"
            )

        lowered = source[:16].lower()
        if lowered.startswith("data:"):
            return ImageConverters.decode_data_uri(source)

        if lowered.startswith(ObjectURLConstants.SCHEME):
            if registry is None:
                raise DecodeError(source, "no object URL registry available")
            try:
                return registry.resolve(source)
            except KeyError:
                raise DecodeError(
                    source, message=ErrorMessages.OBJECT_URL_UNKNOWN.format(url=source)
                ) from None

        if lowered.startswith("file://"):
            return ImageConverters._read_file(Path(url2pathname(unquote(urlparse(source).path))))

        if _URL_SCHEME.match(source):
            raise DecodeError(
                _describe(source), message=ErrorMessages.SOURCE_REMOTE.format(source=_describe(source))
            )

        return ImageConverters._read_file(Path(source))

    @staticmethod
    def _read_file(path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise DecodeError(str(path), e) from e

    @staticmethod
    def decode_rgba(data: bytes, source_label: Optional[str] = None) -> np.ndarray:
        """
        Decode image bytes into an RGBA array.

        The first frame is used for multi-frame files and EXIF orientation is
        applied.

        Args:
            data: Encoded image bytes
            source_label: Description of the source for error messages

        Returns:
            uint8 array of shape (height, width, 4)

        Raises:
            DecodeError: If the bytes are not a supported image
        """
        label = source_label or _describe(data)
        try:
            with Image.open(io.BytesIO(data)) as image:
                oriented = ImageOps.exif_transpose(image)
                rgba = oriented.convert("RGBA")
                pixels = np.array(rgba)
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
            logger.error(f"Failed to decode image from {label}: {e}")
            raise DecodeError(
                label, e, message=ErrorMessages.SOURCE_UNSUPPORTED.format(source=label, error=e)
            ) from e

        if pixels.size == 0:
            raise DecodeError(label, "image has no pixels")
        return pixels

    @staticmethod
    def sniff_mime_type(data: bytes) -> Optional[str]:
        """MIME type of encoded image bytes, or None if unrecognized."""
        try:
            with Image.open(io.BytesIO(data)) as image:
                return Image.MIME.get(image.format)
        except (UnidentifiedImageError, OSError):
            return None

    @staticmethod
    def premultiply(pixels: np.ndarray) -> np.ndarray:
        """
        Convert straight-alpha uint8 RGBA to a premultiplied float32 surface.

        Args:
            pixels: uint8 array (H, W, 4)

        Returns:
            float32 array (H, W, 4) with values in [0, 1]
        """
        surface = pixels.astype(np.float32) / 255.0
        surface[..., :3] *= surface[..., 3:4]
        return surface

    @staticmethod
    def unpremultiply(surface: np.ndarray) -> np.ndarray:
        """
        Convert a premultiplied float32 surface back to straight-alpha uint8.

        Fully transparent pixels come out as (0, 0, 0, 0).
        """
        alpha = surface[..., 3:4]
        color = np.divide(
            surface[..., :3], alpha, out=np.zeros_like(surface[..., :3]), where=alpha > 0
        )
        straight = np.concatenate([color, alpha], axis=-1)
        return np.clip(np.rint(straight * 255.0), 0, 255).astype(np.uint8)

    @staticmethod
    def encode(pixels: np.ndarray, output: OutputSpec) -> bytes:
        """
        Encode RGBA pixels.

        Formats without alpha are flattened onto white first, so a JPEG never
        carries transparency.

        Args:
            pixels: uint8 array (H, W, 4), straight alpha
            output: Format and quality

        Returns:
            Encoded bytes

        Raises:
            EncodeError: If the surface is empty or the encoder fails
        """
        height, width = pixels.shape[:2]
        if width == 0 or height == 0:
            raise EncodeError(
                output.format.name,
                message=ErrorMessages.ENCODE_EMPTY.format(width=width, height=height),
            )

        try:
            image = Image.fromarray(np.ascontiguousarray(pixels))
            buffer = io.BytesIO()
            fmt = output.format

            if not fmt.supports_alpha:
                background = Image.new("RGBA", image.size, Colors.FLATTEN_BACKGROUND)
                image = Image.alpha_composite(background, image).convert("RGB")

            save_kwargs = {"format": fmt.pil_format}
            if fmt.is_lossy:
                save_kwargs["quality"] = output.encoder_quality
            if fmt.name == "JPEG":
                save_kwargs["optimize"] = True
            elif fmt.name == "PNG":
                save_kwargs["compress_level"] = CompositorConstants.PNG_COMPRESS_LEVEL

            image.save(buffer, **save_kwargs)
            return buffer.getvalue()

        except (OSError, ValueError, KeyError, MemoryError) as e:
            logger.error(f"Failed to encode image as {output.format.name}: {e}")
            raise EncodeError(output.format.name, e) from e
