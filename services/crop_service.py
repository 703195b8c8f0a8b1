"""
Crop Service - session state behind the crop screen.

This service holds what the crop screen tracks between widget callbacks
(the uploaded image, crop offset, zoom, rotation and the crop area in
pixels) and orchestrates preview, download and settings persistence
around the compositor.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from config import Settings, configure_logging
from core.compositor import Compositor
from core.constants import CompositorConstants, ErrorMessages, StorageConstants
from core.encoded_image import EncodedImage
from core.exceptions import DecodeError, SessionStateError
from core.image.converters import ImageConverters
from core.object_urls import ObjectURLRegistry
from core.settings_store import CropSettingsStore
from core.utils.decorators import timer
from core.utils.enum_converter import parse_enum
from schemas import CropSettings, FlipSpec, ImageFormat, OutputSpec, Point, Rect

logger = logging.getLogger(__name__)


class CropSession:
    """
    One user's crop session.

    Preview always renders PNG so the circle keeps its transparent
    corners; download uses the chosen format and quality.
    """

    def __init__(
        self,
        compositor: Optional[Compositor] = None,
        settings_store: Optional[CropSettingsStore] = None,
        download_format: ImageFormat = ImageFormat.PNG,
        image_quality: float = CompositorConstants.DEFAULT_QUALITY,
    ):
        """
        Initialize crop session.

        Args:
            compositor: Compositor used for preview and download
            settings_store: Store for per-image crop settings
            download_format: Initial download format
            image_quality: Initial download quality (0, 1]
        """
        self.compositor = compositor or Compositor(ObjectURLRegistry())
        self.settings_store = settings_store or CropSettingsStore()

        self.image_source: Optional[str] = None
        self.preview: Optional[EncodedImage] = None
        self.download_format = download_format
        self.image_quality = OutputSpec(format=download_format, quality=image_quality).quality
        self._reset_crop_state()

    @classmethod
    def from_settings(cls, settings: Settings) -> "CropSession":
        """Build a session (and configure logging) from application settings."""
        configure_logging(settings)
        store = CropSettingsStore(
            directory=settings.storage.settings_dir,
            key_scheme=settings.storage.key_scheme,
            key_length=settings.storage.key_length,
        )
        return cls(
            compositor=Compositor(ObjectURLRegistry()),
            settings_store=store,
            download_format=settings.compositor.default_format,
            image_quality=settings.compositor.default_quality,
        )

    # ---------- Upload ----------
    def load_file(self, path: Union[str, Path]) -> None:
        """
        Read an image file into memory and make it the current image.

        Raises:
            DecodeError: If the file cannot be read or is not an image
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise DecodeError(str(path), e) from e
        self.load_bytes(data)

    def load_bytes(self, data: bytes, mime_type: Optional[str] = None) -> None:
        """
        Make in-memory image bytes the current image.

        The image is held as a data URI, which is also its settings identity.
        Saved settings for it are restored; defaults are used otherwise.

        Raises:
            DecodeError: If the MIME type is not given and the bytes are not
                a recognizable image
        """
        mime_type = mime_type or ImageConverters.sniff_mime_type(data)
        if mime_type is None:
            raise DecodeError(f"<{len(data)} bytes>", "unrecognized image data")

        self.image_source = ImageConverters.bytes_to_data_uri(data, mime_type)
        self._release_preview()
        self._restore_settings()
        logger.info(f"Loaded {mime_type} image ({len(data)} bytes)")

    def _restore_settings(self) -> None:
        saved = self.settings_store.load(self.image_source)
        if saved is None:
            self._reset_crop_state()
            return
        self._apply_settings(saved)

    def _apply_settings(self, saved: CropSettings) -> None:
        self.crop = saved.crop
        self.zoom = saved.zoom or StorageConstants.DEFAULT_ZOOM
        self.rotation = saved.rotation or StorageConstants.DEFAULT_ROTATION
        self.cropped_area_pixels = saved.cropped_area_pixels
        logger.info(f"Restored crop settings (zoom={self.zoom}, rotation={self.rotation})")

    def _reset_crop_state(self) -> None:
        self.crop = Point()
        self.zoom = StorageConstants.DEFAULT_ZOOM
        self.rotation = StorageConstants.DEFAULT_ROTATION
        self.cropped_area_pixels: Optional[Rect] = None

    # ---------- Widget callbacks ----------
    def on_crop_complete(self, area_pixels: Union[Rect, Dict[str, Any]]) -> None:
        """Record the crop area reported by the crop widget."""
        self.cropped_area_pixels = (
            Rect.from_dict(area_pixels) if isinstance(area_pixels, dict) else area_pixels
        )

    def set_crop(self, x: float, y: float) -> None:
        self.crop = Point(x=x, y=y)

    def set_zoom(self, zoom: float) -> None:
        self.zoom = float(zoom)

    def set_rotation(self, rotation: float) -> None:
        self.rotation = float(rotation)

    def set_download_format(self, value: Union[str, ImageFormat]) -> None:
        self.download_format = parse_enum(value, ImageFormat, ImageFormat.PNG)

    def set_image_quality(self, quality: float) -> None:
        """Set download quality; validated to (0, 1]."""
        self.image_quality = OutputSpec(format=self.download_format, quality=quality).quality

    @property
    def current_settings(self) -> CropSettings:
        return CropSettings(
            crop=self.crop,
            zoom=self.zoom,
            rotation=self.rotation,
            cropped_area_pixels=self.cropped_area_pixels,
        )

    # ---------- Settings ----------
    def save_settings(self) -> bool:
        """
        Save the current crop settings for the current image.

        Returns:
            True if the store accepted them, False if it failed

        Raises:
            SessionStateError: If no image or crop area is available
        """
        self._require_inputs()
        saved = self.settings_store.save(self.image_source, self.current_settings)
        if saved:
            logger.info("Crop settings saved")
        else:
            logger.warning("Crop settings could not be saved")
        return saved

    def load_settings(self) -> bool:
        """
        Re-read saved crop settings for the current image.

        Returns:
            True if settings were restored, False if none are stored (the
            current state is kept)

        Raises:
            SessionStateError: If no image is loaded
        """
        if not self.image_source:
            raise SessionStateError(ErrorMessages.NO_IMAGE)

        saved = self.settings_store.load(self.image_source)
        if saved is None:
            logger.info("No saved crop settings for this image")
            return False
        self._apply_settings(saved)
        return True

    # ---------- Output ----------
    def _require_inputs(self) -> Rect:
        if not self.image_source:
            raise SessionStateError(ErrorMessages.NO_IMAGE)
        if self.cropped_area_pixels is None:
            raise SessionStateError(ErrorMessages.NO_CROP_AREA)
        return self.cropped_area_pixels

    def show_preview(self) -> EncodedImage:
        """
        Render the PNG preview and auto-save the current settings.

        The previous preview handle is released. Settings are saved only
        after the preview succeeds, and a failing store does not fail the
        preview.

        Raises:
            SessionStateError: If no image or crop area is available
            CompositorError: If compositing fails
        """
        area = self._require_inputs()
        preview = self.compositor.composite(
            self.image_source,
            area,
            self.rotation,
            FlipSpec(),
            OutputSpec(format=ImageFormat.PNG),
        )
        self._release_preview()
        self.preview = preview

        self.settings_store.save(self.image_source, self.current_settings)
        return preview

    def download(self, directory: Union[str, Path], basename: Optional[str] = None) -> Path:
        """
        Render with the chosen format/quality and write it to a directory.

        The file is named ``cropped-image.<ext>``, with the extension taken
        from the MIME type. The result handle is released after writing.

        Returns:
            Path of the written file
        """
        area = self._require_inputs()
        output = OutputSpec(format=self.download_format, quality=self.image_quality)

        with timer("download") as t:
            with self.compositor.composite(
                self.image_source, area, self.rotation, FlipSpec(), output
            ) as result:
                filename = result.default_filename(basename) if basename else result.default_filename()
                path = result.save(directory, filename)

        logger.info(f"Downloaded {path.name} in {t['ms']:.1f} ms")
        return path

    def _release_preview(self) -> None:
        if self.preview is not None:
            self.preview.release()
            self.preview = None

    def close(self) -> None:
        """Release the preview handle."""
        self._release_preview()

    def __enter__(self) -> "CropSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
