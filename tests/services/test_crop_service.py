"""
Tests for the CropSession service
"""

import io
import json

import pytest
from PIL import Image

from config import Settings, StorageSettings
from conftest import decode_rgba
from core.exceptions import DecodeError, InvalidRectError, SessionStateError
from core.settings_store import CropSettingsStore
from schemas import ImageFormat, KeyScheme, Point, Rect
from services.crop_service import CropSession


class TestLoad:
    """Upload and settings restore"""

    def test_defaults_without_saved_settings(self, session, red_square_png):
        session.load_bytes(red_square_png)
        assert session.image_source.startswith("data:image/png;base64,")
        assert session.crop == Point()
        assert session.zoom == 1.0
        assert session.rotation == 0.0
        assert session.cropped_area_pixels is None

    def test_load_file(self, session, red_square_png, tmp_path):
        path = tmp_path / "avatar.png"
        path.write_bytes(red_square_png)
        session.load_file(path)
        assert session.image_source.startswith("data:image/png;base64,")

    def test_load_missing_file(self, session, tmp_path):
        with pytest.raises(DecodeError):
            session.load_file(tmp_path / "missing.png")

    def test_load_unrecognized_bytes(self, session):
        with pytest.raises(DecodeError):
            session.load_bytes(b"plain text")

    def test_explicit_mime_type(self, session):
        session.load_bytes(b"raw", mime_type="image/x-custom")
        assert session.image_source.startswith("data:image/x-custom;base64,")

    def test_restores_saved_settings(self, compositor, memory_store, red_square_png):
        with CropSession(compositor, memory_store) as first:
            first.load_bytes(red_square_png)
            first.set_crop(3, -4)
            first.set_zoom(1.8)
            first.set_rotation(90)
            first.on_crop_complete(Rect(x=10, y=10, width=50, height=50))
            first.show_preview()

        with CropSession(compositor, memory_store) as second:
            second.load_bytes(red_square_png)
            assert second.crop == Point(x=3, y=-4)
            assert second.zoom == pytest.approx(1.8)
            assert second.rotation == 90
            assert second.cropped_area_pixels == Rect(x=10, y=10, width=50, height=50)

    def test_zero_zoom_falls_back_to_default(self, session, memory_store, red_square_png):
        session.load_bytes(red_square_png)
        session.set_zoom(0)
        session.on_crop_complete({"x": 0, "y": 0, "width": 10, "height": 10})
        session.show_preview()

        session.load_bytes(red_square_png)
        assert session.zoom == 1.0


class TestPreview:
    """Preview rendering"""

    def test_requires_image(self, session):
        with pytest.raises(SessionStateError):
            session.show_preview()

    def test_requires_crop_area(self, session, red_square_png):
        session.load_bytes(red_square_png)
        with pytest.raises(SessionStateError):
            session.show_preview()

    def test_preview_is_png_with_transparent_corners(self, loaded_session):
        loaded_session.set_download_format("image/jpeg")
        preview = loaded_session.show_preview()

        assert preview.mime_type == "image/png"
        pixels = decode_rgba(preview.data)
        assert pixels[0, 0, 3] == 0
        assert tuple(pixels[50, 50]) == (255, 0, 0, 255)

    def test_preview_saves_settings(self, loaded_session, memory_store):
        loaded_session.set_rotation(45)
        loaded_session.show_preview()
        saved = memory_store.load(loaded_session.image_source)
        assert saved.rotation == 45
        assert saved.cropped_area_pixels == Rect(x=0, y=0, width=100, height=100)

    def test_previous_preview_released(self, loaded_session, registry):
        first = loaded_session.show_preview()
        second = loaded_session.show_preview()
        assert first.released
        assert not second.released
        assert len(registry) == 1

    def test_failed_preview_does_not_save(self, loaded_session, memory_store):
        loaded_session.on_crop_complete({"x": 0, "y": 0, "width": 0, "height": 10})
        with pytest.raises(InvalidRectError):
            loaded_session.show_preview()
        assert memory_store.load(loaded_session.image_source) is None

    def test_failing_store_does_not_fail_preview(self, compositor, red_square_png, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = CropSettingsStore(directory=blocker / "settings")

        with CropSession(compositor, store) as session:
            session.load_bytes(red_square_png)
            session.on_crop_complete({"x": 0, "y": 0, "width": 100, "height": 100})
            assert session.show_preview().width == 100

    def test_close_releases_preview(self, compositor, memory_store, red_square_png, registry):
        session = CropSession(compositor, memory_store)
        session.load_bytes(red_square_png)
        session.on_crop_complete({"x": 0, "y": 0, "width": 100, "height": 100})
        session.show_preview()
        session.close()
        assert session.preview is None
        assert len(registry) == 0


class TestSettingsActions:
    """Manual save and load of crop settings"""

    def test_save_requires_image(self, session):
        with pytest.raises(SessionStateError):
            session.save_settings()

    def test_save_requires_crop_area(self, session, red_square_png):
        session.load_bytes(red_square_png)
        with pytest.raises(SessionStateError):
            session.save_settings()

    def test_save_then_load(self, loaded_session, memory_store):
        loaded_session.set_crop(5, 6)
        loaded_session.set_zoom(2.5)
        loaded_session.set_rotation(30)
        assert loaded_session.save_settings() is True
        assert memory_store.load(loaded_session.image_source).zoom == 2.5

        loaded_session.set_crop(0, 0)
        loaded_session.set_zoom(1)
        loaded_session.set_rotation(0)
        loaded_session.on_crop_complete({"x": 1, "y": 1, "width": 20, "height": 20})

        assert loaded_session.load_settings() is True
        assert loaded_session.crop == Point(x=5, y=6)
        assert loaded_session.zoom == 2.5
        assert loaded_session.rotation == 30
        assert loaded_session.cropped_area_pixels == Rect(x=0, y=0, width=100, height=100)

    def test_save_reports_store_failure(self, compositor, red_square_png, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = CropSettingsStore(directory=blocker / "settings")

        with CropSession(compositor, store) as session:
            session.load_bytes(red_square_png)
            session.on_crop_complete({"x": 0, "y": 0, "width": 100, "height": 100})
            assert session.save_settings() is False

    def test_load_requires_image(self, session):
        with pytest.raises(SessionStateError):
            session.load_settings()

    def test_load_without_saved_settings_keeps_state(self, loaded_session):
        loaded_session.set_zoom(3)
        loaded_session.set_rotation(15)

        assert loaded_session.load_settings() is False
        assert loaded_session.zoom == 3
        assert loaded_session.rotation == 15
        assert loaded_session.cropped_area_pixels == Rect(x=0, y=0, width=100, height=100)

    def test_upload_survives_corrupt_entry(self, compositor, red_square_png, tmp_path):
        store = CropSettingsStore(directory=tmp_path)
        with CropSession(compositor, store) as session:
            session.load_bytes(red_square_png)
            tmp_path.joinpath("crop_settings.json").write_text(
                json.dumps({store.make_key(session.image_source): {"zoom": 2}}), encoding="utf-8"
            )

            session.load_bytes(red_square_png)
            assert session.zoom == 1.0
            assert session.load_settings() is False


class TestDownload:
    """Download to disk"""

    def test_png_download(self, loaded_session, tmp_path, registry):
        path = loaded_session.download(tmp_path)
        assert path.name == "cropped-image.png"
        assert decode_rgba(path.read_bytes())[0, 0, 3] == 0
        assert len(registry) == 0

    def test_jpeg_download(self, loaded_session, tmp_path, registry):
        loaded_session.set_download_format("image/jpeg")
        loaded_session.set_image_quality(0.5)
        path = loaded_session.download(tmp_path)

        assert path.name == "cropped-image.jpeg"
        with Image.open(io.BytesIO(path.read_bytes())) as image:
            assert image.format == "JPEG"
        assert len(registry) == 0

    def test_custom_basename(self, loaded_session, tmp_path):
        loaded_session.set_download_format("jpg")
        path = loaded_session.download(tmp_path, basename="avatar")
        assert path.name == "avatar.jpeg"

    def test_download_requires_crop_area(self, session, red_square_png, tmp_path):
        session.load_bytes(red_square_png)
        with pytest.raises(SessionStateError):
            session.download(tmp_path)


class TestOptions:
    """Format and quality controls"""

    def test_format_parsing(self, session):
        session.set_download_format("image/jpeg")
        assert session.download_format is ImageFormat.JPEG
        session.set_download_format("image/tiff")
        assert session.download_format is ImageFormat.PNG

    @pytest.mark.parametrize("quality", [0, 1.5, -1])
    def test_quality_validated(self, session, quality):
        with pytest.raises(ValueError):
            session.set_image_quality(quality)
        assert session.image_quality == pytest.approx(0.92)

    def test_current_settings(self, loaded_session):
        loaded_session.set_crop(1, 2)
        settings = loaded_session.current_settings
        assert settings.crop == Point(x=1, y=2)
        assert settings.cropped_area_pixels.width == 100


class TestFromSettings:
    """Construction from application settings"""

    def test_uses_configured_store(self, tmp_path):
        settings = Settings(
            storage=StorageSettings(settings_dir=str(tmp_path), key_scheme=KeyScheme.SHA256)
        )
        session = CropSession.from_settings(settings)
        assert session.settings_store.key_scheme is KeyScheme.SHA256
        assert session.settings_store.path.parent == tmp_path
        assert session.download_format is ImageFormat.PNG
