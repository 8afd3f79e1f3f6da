"""
Unit tests for the Pillow JPEG codec.
"""

import io

import pytest
from PIL import Image

from media_art_cache.collaborators.image_codec import PillowImageCodec
from media_art_cache.core.constants import JPEG_SOI_MARKER
from media_art_cache.core.errors import CodecFailure


def _open(path):
    with Image.open(path) as img:
        img.load()
        return img.copy(), img.format


class TestPillowImageCodec:

    def test_negative_width_rejected(self):
        with pytest.raises(ValueError):
            PillowImageCodec(max_width=-1)

    def test_raw_jpeg_written_untouched(self, tmp_path, jpeg_bytes):
        """Test JPEG buffers are stored byte for byte when no resize is needed."""
        data = jpeg_bytes()
        dest = tmp_path / "out.jpeg"

        PillowImageCodec().buffer_to_jpeg(data, "image/jpeg", dest)

        assert dest.read_bytes() == data

    def test_png_buffer_converted(self, tmp_path, png_bytes):
        dest = tmp_path / "out.jpeg"

        PillowImageCodec().buffer_to_jpeg(png_bytes(), "image/png", dest)

        img, fmt = _open(dest)
        assert fmt == "JPEG"
        assert img.size == (32, 32)

    def test_alpha_flattened_onto_background(self, tmp_path, png_bytes):
        """Test transparent pixels become the background color."""
        dest = tmp_path / "out.jpeg"

        PillowImageCodec(background_color="#ffffff").buffer_to_jpeg(
            png_bytes((0, 0, 0, 0)), "image/png", dest
        )

        img, _ = _open(dest)
        assert img.mode == "RGB"
        r, g, b = img.getpixel((16, 16))
        assert min(r, g, b) > 240

    def test_wide_image_scaled_down(self, tmp_path):
        buffer = io.BytesIO()
        Image.new("RGB", (64, 32), (10, 200, 10)).save(buffer, format="JPEG")
        dest = tmp_path / "out.jpeg"

        PillowImageCodec(max_width=16).buffer_to_jpeg(buffer.getvalue(), "image/jpeg", dest)

        img, _ = _open(dest)
        assert img.size == (16, 8)

    def test_narrow_image_not_enlarged(self, tmp_path, png_bytes):
        dest = tmp_path / "out.jpeg"

        PillowImageCodec(max_width=256).buffer_to_jpeg(png_bytes(size=(20, 10)), "image/png", dest)

        img, _ = _open(dest)
        assert img.size == (20, 10)

    def test_file_to_jpeg(self, tmp_path, png_bytes):
        source = tmp_path / "cover.png"
        source.write_bytes(png_bytes())
        dest = tmp_path / "out.jpeg"

        PillowImageCodec().file_to_jpeg(source, dest)

        assert dest.read_bytes()[:3] == JPEG_SOI_MARKER

    def test_palette_image_converted(self, tmp_path):
        source = tmp_path / "cover.gif.png"
        Image.new("P", (8, 8)).save(source, format="PNG")
        dest = tmp_path / "out.jpeg"

        PillowImageCodec().file_to_jpeg(source, dest)

        assert dest.read_bytes()[:3] == JPEG_SOI_MARKER

    def test_undecodable_buffer(self, tmp_path):
        with pytest.raises(CodecFailure):
            PillowImageCodec().buffer_to_jpeg(b"garbage", "image/png", tmp_path / "out.jpeg")

    def test_missing_source_file(self, tmp_path):
        with pytest.raises(CodecFailure):
            PillowImageCodec().file_to_jpeg(tmp_path / "missing.png", tmp_path / "out.jpeg")
