"""
Crop Settings Store - per-image persistence of crop widget state
"""

import hashlib
import json
import logging
from pathlib import Path
from threading import RLock
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from core.constants import StorageConstants
from core.enums import KeyScheme
from core.utils.params_processor import params_to_dict
from schemas import CropSettings

logger = logging.getLogger(__name__)


class CropSettingsStore:
    """
    Key-value store for CropSettings, keyed by image identity.

    With ``KeyScheme.PREFIX`` (the default) the key is
    ``"cropSettings-" + identity[:50]``. For data URIs the first 50
    characters are mostly the shared ``data:image/...;base64,`` header, so
    different images can share a key and overwrite each other's settings.
    ``KeyScheme.SHA256`` keys by a hash of the whole identity instead.

    Storage errors never propagate: ``save`` reports False and ``load``
    reports None, and the error is logged.
    """

    def __init__(
        self,
        directory: Optional[Union[str, Path]] = None,
        key_scheme: KeyScheme = KeyScheme.PREFIX,
        key_length: int = StorageConstants.KEY_PREFIX_LENGTH,
    ):
        """
        Initialize Crop Settings Store

        Args:
            directory: Directory holding the JSON file; in memory when None
            key_scheme: How identities are turned into keys
            key_length: Identity prefix length for KeyScheme.PREFIX
        """
        self.key_scheme = key_scheme
        self.key_length = key_length
        self.path: Optional[Path] = (
            Path(directory) / StorageConstants.STORE_FILENAME if directory is not None else None
        )
        self._memory: Dict[str, str] = {}
        self.lock = RLock()

        if key_scheme is KeyScheme.PREFIX:
            logger.info(
                f"Crop settings keyed by the first {key_length} characters of the image "
                "identity; images sharing that prefix share settings"
            )

    def make_key(self, identity: str) -> str:
        """Storage key for an image identity (e.g. its data URI)."""
        if self.key_scheme is KeyScheme.SHA256:
            digest = hashlib.sha256(identity.encode("utf-8")).hexdigest()
            return f"{StorageConstants.KEY_NAMESPACE}{StorageConstants.HASH_KEY_TAG}{digest}"
        return f"{StorageConstants.KEY_NAMESPACE}{identity[: self.key_length]}"

    def save(self, identity: str, settings: CropSettings) -> bool:
        """
        Persist settings for an image

        Returns:
            True on success, False if the store failed
        """
        key = self.make_key(identity)
        try:
            value = json.dumps(params_to_dict(settings))
            with self.lock:
                entries = self._read_all()
                entries[key] = value
                self._write_all(entries)
            logger.debug(f"Saved crop settings under {key[:80]}")
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error saving crop settings: {e}")
            return False

    def load(self, identity: str) -> Optional[CropSettings]:
        """
        Load settings for an image

        Returns:
            Stored settings, or None if absent or unreadable
        """
        key = self.make_key(identity)
        try:
            with self.lock:
                value = self._read_all().get(key)
            if value is None:
                return None
            if not isinstance(value, str):
                logger.error(f"Corrupt crop settings under {key[:80]}: {type(value).__name__} entry")
                return None
            return CropSettings.model_validate(json.loads(value))
        except (OSError, TypeError, ValueError, ValidationError) as e:
            logger.error(f"Error loading crop settings: {e}")
            return None

    def delete(self, identity: str) -> bool:
        """Remove settings for an image; True if something was removed"""
        key = self.make_key(identity)
        try:
            with self.lock:
                entries = self._read_all()
                if entries.pop(key, None) is None:
                    return False
                self._write_all(entries)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error deleting crop settings: {e}")
            return False

    def keys(self) -> List[str]:
        try:
            with self.lock:
                return list(self._read_all().keys())
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error listing crop settings: {e}")
            return []

    def _read_all(self) -> Dict[str, str]:
        if self.path is None:
            return dict(self._memory)
        if not self.path.exists():
            return {}
        entries = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(entries, dict):
            raise ValueError(f"Settings file {self.path} does not hold an object")
        return entries

    def _write_all(self, entries: Dict[str, str]) -> None:
        if self.path is None:
            self._memory = dict(entries)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(entries), encoding="utf-8")
        tmp_path.replace(self.path)
