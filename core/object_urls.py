"""
Object URL Registry - in-memory store behind ``blob:`` handles
"""

import logging
import uuid
from threading import RLock
from typing import Dict, Optional, Tuple

from core.constants import ErrorMessages, ObjectURLConstants

logger = logging.getLogger(__name__)


class ObjectURLRegistry:
    """
    Maps ``blob:`` URLs to encoded bytes until they are revoked.

    Entries live until ``revoke()`` (or ``clear()``) is called; a handle
    that is never revoked is kept for the lifetime of the registry.
    """

    def __init__(self, origin: str = ObjectURLConstants.ORIGIN):
        """
        Initialize Object URL Registry

        Args:
            origin: Origin segment used in generated URLs
        """
        self.origin = origin
        self._entries: Dict[str, Tuple[bytes, str]] = {}

        # Statistics
        self.created_count = 0
        self.revoked_count = 0

        # Thread safety (RLock allows reentrant locking)
        self.lock = RLock()

    def create(self, data: bytes, mime_type: str) -> str:
        """
        Register bytes and return a new URL for them

        Args:
            data: Encoded bytes
            mime_type: MIME type of the bytes

        Returns:
            Object URL
        """
        with self.lock:
            url = f"{ObjectURLConstants.SCHEME}{self.origin}/{uuid.uuid4()}"
            self._entries[url] = (bytes(data), mime_type)
            self.created_count += 1
            logger.debug(f"Created object URL {url} ({len(data)} bytes, {mime_type})")
            return url

    def resolve(self, url: str) -> bytes:
        """
        Get the bytes behind a URL

        Raises:
            KeyError: If the URL is unknown or revoked
        """
        with self.lock:
            try:
                return self._entries[url][0]
            except KeyError:
                raise KeyError(ErrorMessages.OBJECT_URL_UNKNOWN.format(url=url)) from None

    def mime_type(self, url: str) -> Optional[str]:
        """Get the MIME type behind a URL, or None if unknown"""
        with self.lock:
            entry = self._entries.get(url)
            return entry[1] if entry else None

    def revoke(self, url: str) -> bool:
        """
        Release a URL

        Returns:
            True if an entry was freed, False if it was already gone
        """
        with self.lock:
            if self._entries.pop(url, None) is None:
                return False
            self.revoked_count += 1
            logger.debug(f"Revoked object URL {url}")
            return True

    def clear(self) -> None:
        """Release every URL"""
        with self.lock:
            count = len(self._entries)
            self._entries.clear()
            self.revoked_count += count
            logger.info(f"Cleared {count} object URLs")

    def __contains__(self, url: object) -> bool:
        with self.lock:
            return url in self._entries

    def __len__(self) -> int:
        with self.lock:
            return len(self._entries)


_default_registry = ObjectURLRegistry()


def get_default_registry() -> ObjectURLRegistry:
    """Process-wide registry used when a compositor is not given its own."""
    return _default_registry
