"""
Centralized enums for Circle Crop.
"""

from enum import Enum
from typing import Any, Optional


class ImageFormat(str, Enum):
    """Output encodings, valued by MIME type."""

    PNG = "image/png"
    JPEG = "image/jpeg"
    WEBP = "image/webp"

    @classmethod
    def _missing_(cls, value: Any) -> Optional["ImageFormat"]:
        # Accept short names and any case: "jpeg", "JPG", "Image/PNG"
        if not isinstance(value, str):
            return None
        name = value.strip().lower()
        if name.startswith("image/"):
            name = name[len("image/") :]
        aliases = {"png": cls.PNG, "jpeg": cls.JPEG, "jpg": cls.JPEG, "webp": cls.WEBP}
        return aliases.get(name)

    @classmethod
    def parse(cls, value: Any, default: Optional["ImageFormat"] = None) -> "ImageFormat":
        """Parse a format, falling back to PNG like a canvas encoder does."""
        from core.utils.enum_converter import parse_enum

        return parse_enum(value, cls, default or cls.PNG)

    @property
    def supports_alpha(self) -> bool:
        return self is not ImageFormat.JPEG

    @property
    def is_lossy(self) -> bool:
        return self is not ImageFormat.PNG

    @property
    def extension(self) -> str:
        """File extension derived from the MIME type (image/jpeg -> jpeg)."""
        return self.value.split("/")[1]

    @property
    def pil_format(self) -> str:
        return self.name


class KeyScheme(str, Enum):
    """How crop settings are keyed in the settings store."""

    PREFIX = "prefix"  # first N characters of the image identity
    SHA256 = "sha256"  # content hash of the full identity
