"""
Tests for the product image pipeline.
"""

import io
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from PIL import Image

from content_pipeline.services.image_processor import ImageProcessor, fit_to_canvas

BACKGROUND = (253, 251, 247)


def png_bytes(size=(300, 300), color=(255, 0, 0, 255), mode="RGBA"):
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class TestFitToCanvas:
    def test_output_is_webp_of_canvas_size(self):
        encoded = fit_to_canvas(png_bytes(), (600, 400), BACKGROUND, 80)

        with Image.open(io.BytesIO(encoded)) as image:
            assert image.format == "WEBP"
            assert image.size == (600, 400)

    def test_square_image_is_padded_with_background(self):
        encoded = fit_to_canvas(png_bytes(color=(0, 0, 255, 255)), (600, 400), BACKGROUND, 100)

        with Image.open(io.BytesIO(encoded)) as image:
            rgb = image.convert("RGB")
            left_edge = rgb.getpixel((5, 200))
            centre = rgb.getpixel((300, 200))

        assert all(abs(a - b) <= 8 for a, b in zip(left_edge, BACKGROUND))
        assert centre[2] > 200 and centre[0] < 50

    def test_transparency_is_flattened_onto_background(self):
        encoded = fit_to_canvas(png_bytes(color=(0, 0, 0, 0)), (600, 400), BACKGROUND, 100)

        with Image.open(io.BytesIO(encoded)) as image:
            centre = image.convert("RGB").getpixel((300, 200))

        assert all(abs(a - b) <= 8 for a, b in zip(centre, BACKGROUND))


class TestImageProcessor:
    @pytest.mark.asyncio
    async def test_download_and_process_writes_webp(self, tmp_path):
        processor = ImageProcessor(output_dir=str(tmp_path), url_prefix="/images/products/")

        with patch.object(processor, "_download", AsyncMock(return_value=png_bytes())):
            path = await processor.download_and_process("https://cdn.test/a.png", "lg-gram-16")

        assert path == "/images/products/lg-gram-16.webp"
        assert (tmp_path / "lg-gram-16.webp").is_file()

    @pytest.mark.asyncio
    async def test_http_error_returns_none(self, tmp_path):
        processor = ImageProcessor(output_dir=str(tmp_path))
        error = httpx.ConnectError("unreachable")

        with patch.object(processor, "_download", AsyncMock(side_effect=error)):
            assert await processor.download_and_process("https://cdn.test/a.png", "x") is None

        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_invalid_image_returns_none(self, tmp_path):
        processor = ImageProcessor(output_dir=str(tmp_path))

        with patch.object(processor, "_download", AsyncMock(return_value=b"<html>not an image")):
            assert await processor.download_and_process("https://cdn.test/a.png", "x") is None
