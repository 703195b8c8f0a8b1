"""
Configuration for Circle Crop.

Settings are plain Pydantic models populated from ``CIRCLE_CROP_*``
environment variables and cached by ``get_settings()``.
"""

import logging
import os
from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from core.constants import CompositorConstants, StorageConstants, SystemConstants
from core.enums import ImageFormat, KeyScheme

ENV_PREFIX = "CIRCLE_CROP_"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _env_bool(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class SystemSettings(BaseModel):
    """Logging and debug switches"""

    log_level: str = Field(default=SystemConstants.LOG_LEVEL_DEFAULT)
    debug: bool = False


class CompositorSettings(BaseModel):
    """Defaults applied when a caller omits output parameters"""

    default_format: ImageFormat = ImageFormat.PNG
    default_quality: float = Field(default=CompositorConstants.DEFAULT_QUALITY, gt=0.0, le=1.0)


class StorageSettings(BaseModel):
    """Crop settings persistence"""

    settings_dir: Optional[str] = Field(
        default=None, description="Directory for the JSON store; in-memory when unset"
    )
    key_scheme: KeyScheme = KeyScheme.PREFIX
    key_length: int = Field(default=StorageConstants.KEY_PREFIX_LENGTH, ge=1)


class Settings(BaseModel):
    """Top-level settings tree"""

    system: SystemSettings = SystemSettings()
    compositor: CompositorSettings = CompositorSettings()
    storage: StorageSettings = StorageSettings()

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        return cls(
            system=SystemSettings(
                log_level=_env("LOG_LEVEL", SystemConstants.LOG_LEVEL_DEFAULT).upper(),
                debug=_env_bool("DEBUG", False),
            ),
            compositor=CompositorSettings(
                default_format=ImageFormat.parse(_env("DEFAULT_FORMAT")),
                default_quality=float(
                    _env("DEFAULT_QUALITY", str(CompositorConstants.DEFAULT_QUALITY))
                ),
            ),
            storage=StorageSettings(
                settings_dir=_env("SETTINGS_DIR"),
                key_scheme=KeyScheme(_env("KEY_SCHEME", KeyScheme.PREFIX.value).lower()),
                key_length=int(_env("KEY_LENGTH", str(StorageConstants.KEY_PREFIX_LENGTH))),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()


def resolve_log_level(settings: Settings) -> int:
    """Numeric log level for the settings; debug forces DEBUG."""
    if settings.system.debug:
        return logging.DEBUG
    return getattr(logging, settings.system.log_level, logging.INFO)


def configure_logging(settings: Optional[Settings] = None) -> int:
    """Configure root logging from settings and return the level applied."""
    settings = settings or get_settings()
    level = resolve_log_level(settings)
    logging.basicConfig(level=level, format=SystemConstants.LOG_FORMAT)
    return level
