"""
Exceptions raised by the crop pipeline and the session service.
"""

from typing import Any, Optional

from core.constants import ErrorMessages


class CompositorError(Exception):
    """Base class for compositor failures"""


class DecodeError(CompositorError):
    """Source is unreadable, unsupported or unreachable"""

    def __init__(self, source: Any, error: Optional[Any] = None, message: Optional[str] = None):
        self.source = source
        self.error = error
        if message is None:
            message = ErrorMessages.SOURCE_UNREADABLE.format(source=source, error=error)
        super().__init__(message)


class InvalidRectError(CompositorError):
    """Crop rectangle has non-positive or non-finite dimensions"""

    def __init__(self, rect: Any, message: Optional[str] = None):
        self.rect = rect
        if message is None:
            message = ErrorMessages.RECT_INVALID_SIZE.format(
                width=getattr(rect, "width", None), height=getattr(rect, "height", None)
            )
        super().__init__(message)


class EncodeError(CompositorError):
    """Final serialization failed; no output is produced"""

    def __init__(self, format: Any, error: Optional[Any] = None, message: Optional[str] = None):
        self.format = format
        self.error = error
        if message is None:
            message = ErrorMessages.ENCODE_FAILED.format(format=format, error=error)
        super().__init__(message)


class SessionStateError(RuntimeError):
    """Session operation called before its inputs exist"""
