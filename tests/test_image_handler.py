import io

import numpy as np
import pytest
from PIL import Image

from ifire.errors import AnalysisUnavailable, DecodeError
from ifire.image_handler import ImageUploadHandler, PixelSampler, round_half_up

from conftest import FakeUpload


def png_bytes(size=(32, 16), color=(10, 20, 30)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class TestValidation:
    def test_accepts_image(self):
        assert ImageUploadHandler.validate_image(FakeUpload("forest.JPG", 2048, "image/jpeg")) == (True, "")

    def test_rejects_missing_file(self):
        is_valid, message = ImageUploadHandler.validate_image(None)
        assert not is_valid and message

    def test_rejects_oversized_file(self):
        upload = FakeUpload("big.png", 10 * 1024 * 1024 + 1, "image/png")
        assert ImageUploadHandler.validate_image(upload)[0] is False
        assert ImageUploadHandler.validate_image(upload, max_file_size=20 * 1024 * 1024)[0] is True

    def test_rejects_empty_file(self):
        assert ImageUploadHandler.validate_image(FakeUpload("a.png", 0, "image/png"))[0] is False

    def test_rejects_non_image_mime(self):
        assert ImageUploadHandler.validate_image(FakeUpload("clip.png", 10, "video/mp4"))[0] is False

    @pytest.mark.parametrize("name", ["notes.txt", "noextension"])
    def test_rejects_unsupported_extension(self, name):
        assert ImageUploadHandler.validate_image(FakeUpload(name, 10, None))[0] is False


class TestDecoding:
    def test_loads_bytes(self):
        image = ImageUploadHandler.load_image(png_bytes())
        assert image.size == (32, 16)

    def test_loads_file_like(self):
        stream = io.BytesIO(png_bytes())
        stream.read()
        assert ImageUploadHandler.load_image(stream).size == (32, 16)

    @pytest.mark.parametrize("data", [b"", b"definitely not an image", b"\x89PNG\r\n\x1a\n"])
    def test_bad_data_raises_decode_error(self, data):
        with pytest.raises(DecodeError):
            ImageUploadHandler.load_image(data)

    def test_decompression_bomb_raises_decode_error(self, monkeypatch):
        # 512 pixels is more than twice the lowered limit
        data = png_bytes(size=(32, 16))
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
        with pytest.raises(DecodeError):
            ImageUploadHandler.load_image(data)

    def test_image_info(self):
        image = ImageUploadHandler.load_image(png_bytes())
        info = ImageUploadHandler.get_image_info(image, "x.png", 123)
        assert info["width"] == 32
        assert info["channels"] == 3
        assert info["file_size"] == 123


@pytest.mark.parametrize("value,expected", [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (0.06, 0)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


class TestPixelSampler:
    @pytest.mark.parametrize("size,expected", [
        ((300, 200), (300, 200, 1.0)),
        ((1200, 800), (600, 400, 0.5)),
        ((800, 1200), (400, 600, 0.5)),
        ((1000, 3), (600, 2, 0.6)),
    ])
    def test_working_size(self, size, expected):
        width, height, scale = PixelSampler(600).working_size(*size)
        assert (width, height) == expected[:2]
        assert scale == pytest.approx(expected[2])

    def test_sample_returns_rgba_buffer(self):
        working = PixelSampler(600).sample(Image.new("RGB", (1200, 800), (1, 2, 3)))
        assert working.pixels.shape == (400, 600, 4)
        assert working.pixels.dtype == np.uint8
        assert working.original_size == (1200, 800)
        assert working.pixel_count == 240000
        assert tuple(working.pixels[200, 300]) == (1, 2, 3, 255)

    def test_small_image_is_not_resampled(self):
        array = np.random.default_rng(3).integers(0, 256, size=(50, 70, 3), dtype=np.uint8)
        working = PixelSampler(600).sample(Image.fromarray(array))
        assert np.array_equal(working.pixels[:, :, :3], array)

    def test_palette_and_grayscale_images_are_converted(self):
        for mode in ("L", "P", "LA"):
            working = PixelSampler(600).sample(Image.new(mode, (20, 10)))
            assert working.pixels.shape == (10, 20, 4)

    def test_empty_working_image_is_unavailable(self):
        with pytest.raises(AnalysisUnavailable):
            PixelSampler(600).sample(Image.new("RGB", (10000, 1)))

    def test_transparent_pixels_read_as_black(self):
        array = np.zeros((10, 20, 4), dtype=np.uint8)
        array[:, :] = (200, 200, 200, 0)
        array[:, 10:] = (230, 150, 50, 255)
        working = PixelSampler(600).sample(Image.fromarray(array))
        assert tuple(working.pixels[5, 2]) == (0, 0, 0, 0)
        assert tuple(working.pixels[5, 15]) == (230, 150, 50, 255)
