"""
Enum conversion utilities.

Provides standardized parsing of user-facing strings (MIME types, short
format names) into enums, with case-insensitive matching and fallback
defaults.
"""

import logging
from typing import Any, Type, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


def parse_enum(value: Any, enum_class: Type[T], default: T, normalize: bool = True) -> T:
    """
    Parse value to enum with fallback to default.

    Args:
        value: Value to parse (string, enum, or None)
        enum_class: Enum class to parse to
        default: Default enum value if parsing fails
        normalize: Whether to strip and lowercase string before parsing
            (for case-insensitive matching)

    Returns:
        Parsed enum value or default

    Example:
        >>> fmt = parse_enum("JPG", ImageFormat, ImageFormat.PNG)
        >>> # Returns ImageFormat.JPEG for "jpg", "jpeg", "image/jpeg"
    """
    # Already an enum instance
    if isinstance(value, enum_class):
        return value

    # None or missing value
    if value is None:
        return default

    # String value - try to parse
    try:
        str_value = value.strip().lower() if normalize else value
        return enum_class(str_value)
    except (ValueError, AttributeError):
        logger.warning(
            f"Unrecognized {enum_class.__name__} value {value!r}, using {enum_to_string(default)}"
        )
        return default


def enum_to_string(value: Any) -> str:
    """
    Convert enum to string value, or pass through if already string.

    Example:
        >>> enum_to_string(ImageFormat.JPEG)
        >>> # Returns "image/jpeg"
    """
    return value.value if hasattr(value, "value") else value
