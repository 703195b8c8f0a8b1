"""
Encoded compositor output and its releasable handle.
"""

import base64
import logging
from pathlib import Path
from typing import Optional, Union

from core.constants import ObjectURLConstants
from core.enums import ImageFormat
from core.object_urls import ObjectURLRegistry

logger = logging.getLogger(__name__)


class EncodedImage:
    """
    Encoded image bytes plus a ``blob:`` URL registered for them.

    The caller owns the handle and must call ``release()`` (or use the
    object as a context manager) once the image is no longer displayed or
    downloaded. The bytes stay readable through ``data`` after release;
    only the URL stops resolving.
    """

    def __init__(
        self,
        data: bytes,
        format: ImageFormat,
        width: int,
        height: int,
        registry: ObjectURLRegistry,
        processing_time_ms: float = 0.0,
    ):
        self.data = data
        self.format = format
        self.width = width
        self.height = height
        self.processing_time_ms = processing_time_ms
        self._registry = registry
        self.url = registry.create(data, format.value)

    @property
    def mime_type(self) -> str:
        return self.format.value

    @property
    def extension(self) -> str:
        return self.format.extension or ObjectURLConstants.FALLBACK_EXTENSION

    @property
    def released(self) -> bool:
        return self.url not in self._registry

    @property
    def size(self) -> int:
        return len(self.data)

    def release(self) -> None:
        """Revoke the URL. Safe to call more than once."""
        self._registry.revoke(self.url)

    def to_data_uri(self) -> str:
        """Inline ``data:`` URI for previews."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def default_filename(self, basename: str = ObjectURLConstants.DEFAULT_DOWNLOAD_BASENAME) -> str:
        return f"{basename}.{self.extension}"

    def save(self, target: Union[str, Path], filename: Optional[str] = None) -> Path:
        """
        Write the bytes to disk (the "download" action).

        Args:
            target: Directory, or file path when it has a suffix or already exists
            filename: Override for the file name inside a directory target

        Returns:
            Path of the written file
        """
        path = Path(target)
        # An existing file is overwritten even without a suffix
        existing_file = path.exists() and not path.is_dir()
        if not existing_file and (path.is_dir() or not path.suffix):
            path.mkdir(parents=True, exist_ok=True)
            path = path / (filename or self.default_filename())
        path.write_bytes(self.data)
        logger.info(f"Saved {self.width}x{self.height} {self.mime_type} to {path}")
        return path

    def __enter__(self) -> "EncodedImage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        return (
            f"EncodedImage({self.mime_type}, {self.width}x{self.height}, "
            f"{self.size} bytes, url={self.url!r})"
        )
