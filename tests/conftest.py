"""
Pytest configuration and fixtures for Circle Crop tests
"""

import io

import cv2
import numpy as np
import pytest
from PIL import Image

from core.compositor import Compositor
from core.image.raster import Raster
from core.object_urls import ObjectURLRegistry
from core.settings_store import CropSettingsStore
from services.crop_service import CropSession


def encode_png(pixels: np.ndarray) -> bytes:
    """Encode an RGBA array as PNG bytes"""
    buffer = io.BytesIO()
    Image.fromarray(pixels).save(buffer, format="PNG")
    return buffer.getvalue()


def decode_rgba(data: bytes) -> np.ndarray:
    """Decode image bytes to an RGBA array (for assertions)"""
    with Image.open(io.BytesIO(data)) as image:
        return np.array(image.convert("RGBA"))


def distances_from_center(width: int, height: int) -> np.ndarray:
    """Pixel-centre distance to the rectangle centre"""
    ys, xs = np.mgrid[:height, :width]
    return np.hypot(xs + 0.5 - width / 2.0, ys + 0.5 - height / 2.0)


@pytest.fixture
def red_square():
    """100x100 opaque red image"""
    pixels = np.zeros((100, 100, 4), dtype=np.uint8)
    pixels[...] = (255, 0, 0, 255)
    return pixels


@pytest.fixture
def red_square_png(red_square):
    """100x100 opaque red image as PNG bytes"""
    return encode_png(red_square)


@pytest.fixture
def test_image():
    """Opaque 80x60 test image with distinct content"""
    image = np.zeros((60, 80, 3), dtype=np.uint8)
    image[:] = (30, 60, 90)
    # Add some content
    cv2.rectangle(image, (10, 10), (40, 30), (255, 255, 255), -1)
    cv2.circle(image, (60, 40), 12, (200, 50, 10), -1)
    alpha = np.full((60, 80, 1), 255, dtype=np.uint8)
    return np.concatenate([image, alpha], axis=-1)


@pytest.fixture
def noise_image():
    """Opaque 64x64 random image"""
    rng = np.random.default_rng(1234)
    pixels = rng.integers(0, 256, size=(64, 64, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    return pixels


@pytest.fixture
def test_raster(test_image):
    return Raster(test_image)


@pytest.fixture
def registry():
    """Fresh object URL registry"""
    registry = ObjectURLRegistry()
    yield registry
    # Cleanup
    registry.clear()


@pytest.fixture
def compositor(registry):
    """Compositor publishing to its own registry"""
    return Compositor(registry)


@pytest.fixture
def memory_store():
    """In-memory crop settings store"""
    return CropSettingsStore()


@pytest.fixture
def file_store(tmp_path):
    """Crop settings store backed by a temporary directory"""
    return CropSettingsStore(directory=tmp_path / "settings")


@pytest.fixture
def session(compositor, memory_store):
    """Crop session over a private registry and in-memory settings"""
    with CropSession(compositor=compositor, settings_store=memory_store) as session:
        yield session


@pytest.fixture
def loaded_session(session, red_square_png):
    """Session with the red square loaded and a full-image crop area"""
    session.load_bytes(red_square_png)
    session.on_crop_complete({"x": 0, "y": 0, "width": 100, "height": 100})
    return session
