"""
Tests for source reading, decoding and encoding
"""

import io

import numpy as np
import pytest
from PIL import Image

from conftest import encode_png
from core.exceptions import DecodeError, EncodeError
from core.image.converters import ImageConverters
from core.image.raster import Raster
from schemas import ImageFormat, OutputSpec


class TestSources:
    """Reading image sources into bytes"""

    def test_bytes_pass_through(self):
        assert ImageConverters.source_to_bytes(b"abc") == b"abc"
        assert ImageConverters.source_to_bytes(bytearray(b"abc")) == b"abc"

    def test_base64_data_uri(self, red_square_png):
        uri = ImageConverters.bytes_to_data_uri(red_square_png, "image/png")
        assert uri.startswith("data:image/png;base64,")
        assert ImageConverters.source_to_bytes(uri) == red_square_png

    def test_percent_encoded_data_uri(self):
        assert ImageConverters.decode_data_uri("data:text/plain,a%20b") == b"a b"

    def test_malformed_data_uri(self):
        with pytest.raises(DecodeError):
            ImageConverters.decode_data_uri("data:image/png;base64")
        with pytest.raises(DecodeError):
            ImageConverters.decode_data_uri("data:image/png;base64,abcde")

    def test_blob_url_without_registry(self):
        with pytest.raises(DecodeError):
            ImageConverters.source_to_bytes("blob:circle-crop/abc")

    def test_blob_url(self, registry):
        url = registry.create(b"payload", "image/png")
        assert ImageConverters.source_to_bytes(url, registry) == b"payload"

    def test_unsupported_type(self):
        with pytest.raises(DecodeError):
            ImageConverters.source_to_bytes(42)

    @pytest.mark.parametrize("url", ["http://example.com/a.png", "ftp://host/a.png"])
    def test_remote_urls_rejected(self, url):
        with pytest.raises(DecodeError) as exc_info:
            ImageConverters.source_to_bytes(url)
        assert exc_info.value.source == url


class TestDecode:
    """Bytes to RGBA"""

    def test_rgb_png_gains_alpha(self):
        buffer = io.BytesIO()
        Image.new("RGB", (7, 5), (1, 2, 3)).save(buffer, format="PNG")
        pixels = ImageConverters.decode_rgba(buffer.getvalue())
        assert pixels.shape == (5, 7, 4)
        assert tuple(pixels[0, 0]) == (1, 2, 3, 255)

    def test_exif_orientation_applied(self):
        exif = Image.Exif()
        exif[0x0112] = 6  # rotate 90 clockwise on display
        buffer = io.BytesIO()
        Image.new("RGB", (20, 10), (0, 128, 0)).save(buffer, format="JPEG", exif=exif)

        pixels = ImageConverters.decode_rgba(buffer.getvalue())
        assert pixels.shape == (20, 10, 4)

    def test_first_frame_of_animation(self):
        frames = [Image.new("RGB", (8, 8), color) for color in [(255, 0, 0), (0, 0, 255)]]
        buffer = io.BytesIO()
        frames[0].save(buffer, format="GIF", save_all=True, append_images=frames[1:])

        pixels = ImageConverters.decode_rgba(buffer.getvalue())
        assert pixels.shape == (8, 8, 4)
        r, g, b, a = pixels[4, 4]
        assert r > 200 and b < 50 and a == 255

    def test_garbage(self):
        with pytest.raises(DecodeError):
            ImageConverters.decode_rgba(b"definitely not an image")

    def test_raster_from_bytes(self, test_image):
        raster = Raster.from_bytes(encode_png(test_image))
        assert (raster.width, raster.height) == (80, 60)
        np.testing.assert_array_equal(raster.pixels, test_image)

    def test_sniff_mime_type(self, red_square_png):
        assert ImageConverters.sniff_mime_type(red_square_png) == "image/png"
        assert ImageConverters.sniff_mime_type(b"nope") is None


class TestPremultiply:
    """Straight and premultiplied alpha"""

    def test_round_trip(self, noise_image):
        pixels = noise_image.copy()
        pixels[..., 3] = np.arange(64, dtype=np.uint8)[:, np.newaxis] * 4 + 3
        surface = ImageConverters.premultiply(pixels)
        assert surface.dtype == np.float32

        restored = ImageConverters.unpremultiply(surface)
        np.testing.assert_array_equal(restored[..., 3], pixels[..., 3])
        np.testing.assert_array_equal(restored[:, :, :3][pixels[..., 3] == 255], pixels[..., :3][pixels[..., 3] == 255])

    def test_transparent_pixels_are_zeroed(self):
        pixels = np.array([[[200, 100, 50, 0]]], dtype=np.uint8)
        restored = ImageConverters.unpremultiply(ImageConverters.premultiply(pixels))
        assert tuple(restored[0, 0]) == (0, 0, 0, 0)


class TestEncode:
    """RGBA to bytes"""

    def test_empty_surface(self):
        with pytest.raises(EncodeError):
            ImageConverters.encode(np.zeros((0, 10, 4), dtype=np.uint8), OutputSpec())

    def test_jpeg_flattens_onto_white(self):
        pixels = np.zeros((16, 16, 4), dtype=np.uint8)
        data = ImageConverters.encode(pixels, OutputSpec(format=ImageFormat.JPEG))
        with Image.open(io.BytesIO(data)) as image:
            assert image.mode == "RGB"
            assert np.all(np.array(image) > 240)

    def test_png_keeps_alpha(self):
        pixels = np.zeros((4, 4, 4), dtype=np.uint8)
        pixels[1, 1] = (10, 20, 30, 40)
        data = ImageConverters.encode(pixels, OutputSpec())
        with Image.open(io.BytesIO(data)) as image:
            assert image.mode == "RGBA"
            assert tuple(np.array(image)[1, 1]) == (10, 20, 30, 40)
