"""Tests for page rasterization, crops, and contrast stretching."""

from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import fitz  # PyMuPDF
import numpy as np
import pytest
from PIL import Image

from transit_ocr.errors import DocumentLoadError, PageNotFound
from transit_ocr.ocr.rasterizer import CropRect, PageBitmap, PageRasterizer
from transit_ocr.preprocessing.contrast import contrast_lut, stretch_contrast, to_gray
from transit_ocr.utils.config import RasterConfig


class TestContrast:
    """Tests for the linear contrast stretch."""

    def test_lut_values(self) -> None:
        lut = contrast_lut(1.4)
        assert lut.shape == (256,)
        assert lut[128] == 128
        assert lut[100] == 89
        assert lut[0] == 0
        assert lut[255] == 255

    def test_stretch_every_channel(self, sample_color_image: np.ndarray) -> None:
        result = stretch_contrast(sample_color_image, 1.4)
        assert result.shape == sample_color_image.shape
        assert result.dtype == np.uint8
        assert np.all(result == 89)

    def test_identity_returns_copy(self, sample_color_image: np.ndarray) -> None:
        result = stretch_contrast(sample_color_image, 1.0)
        assert np.array_equal(result, sample_color_image)
        assert result is not sample_color_image

    def test_to_gray(self, sample_color_image: np.ndarray) -> None:
        assert to_gray(sample_color_image).shape == (40, 60)


class TestPageBitmap:
    """Tests for bitmap ownership."""

    def test_release(self, sample_color_image: np.ndarray) -> None:
        bitmap = PageBitmap(sample_color_image, page_number=1, scale=4.0)
        assert bitmap.width == 60
        assert bitmap.height == 40
        bitmap.release()
        bitmap.release()
        assert bitmap.released
        with pytest.raises(ValueError):
            _ = bitmap.pixels


class TestCropRect:
    """Tests for crop rectangle conversion."""

    def test_normalized(self) -> None:
        page = fitz.Rect(0, 0, 600, 800)
        rect = CropRect(0.0, 0.7, 0.35, 0.3).to_page_rect(page, 4.0)
        assert rect.x0 == pytest.approx(0)
        assert rect.y0 == pytest.approx(560)
        assert rect.x1 == pytest.approx(210)
        assert rect.y1 == pytest.approx(800)

    def test_pixel_bounds(self) -> None:
        page = fitz.Rect(0, 0, 600, 800)
        rect = CropRect(400, 400, 800, 4000, normalized=False).to_page_rect(page, 4.0)
        assert (rect.x0, rect.y0, rect.x1) == pytest.approx((100, 100, 300))
        assert rect.y1 == pytest.approx(800)


class TestPageRasterizer:
    """Tests for PageRasterizer against generated PDFs."""

    @pytest.fixture
    def rasterizer(self) -> PageRasterizer:
        return PageRasterizer(RasterConfig(scale=2.0, crop_scale=2.0))

    def test_open_reports_page_count(
        self, rasterizer: PageRasterizer, make_pdf: Callable[..., Path]
    ) -> None:
        handle = rasterizer.open(make_pdf(3))
        assert handle.page_count == 3
        handle.close()
        handle.close()
        assert handle.closed

    def test_open_missing_file(self, rasterizer: PageRasterizer, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            rasterizer.open(tmp_path / "missing.pdf")

    def test_open_non_pdf(self, rasterizer: PageRasterizer, tmp_path: Path) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("not a permit card")
        with pytest.raises(DocumentLoadError):
            rasterizer.open(path)

    def test_page_out_of_range(
        self, rasterizer: PageRasterizer, make_pdf: Callable[..., Path]
    ) -> None:
        handle = rasterizer.open(make_pdf(2))
        try:
            with pytest.raises(PageNotFound):
                rasterizer.render(handle, 3)
            with pytest.raises(PageNotFound):
                rasterizer.render_crop(handle, 0, CropRect(0, 0, 1, 1))
        finally:
            handle.close()

    @patch("transit_ocr.ocr.rasterizer.convert_from_path")
    def test_render_single_page(
        self,
        mock_convert,
        rasterizer: PageRasterizer,
        make_pdf: Callable[..., Path],
    ) -> None:
        mock_convert.return_value = [Image.new("RGB", (50, 70), (100, 100, 100))]
        handle = rasterizer.open(make_pdf(2))
        try:
            bitmap = rasterizer.render(handle, 2, scale=4.0)
        finally:
            handle.close()

        kwargs = mock_convert.call_args.kwargs
        assert kwargs["dpi"] == 288
        assert kwargs["first_page"] == 2
        assert kwargs["last_page"] == 2
        assert bitmap.pixels.shape == (70, 50, 3)
        assert bitmap.pixels[0, 0, 0] == 89
        assert bitmap.page_number == 2

    @patch("transit_ocr.ocr.rasterizer.convert_from_path")
    def test_render_rotated(
        self,
        mock_convert,
        rasterizer: PageRasterizer,
        make_pdf: Callable[..., Path],
    ) -> None:
        mock_convert.return_value = [Image.new("RGB", (50, 70), (255, 255, 255))]
        handle = rasterizer.open(make_pdf(1))
        try:
            bitmap = rasterizer.render(handle, 1, rotation=90)
        finally:
            handle.close()
        assert bitmap.pixels.shape == (50, 70, 3)
        assert bitmap.rotation == 90

    def test_render_crop_only_renders_rect(
        self, rasterizer: PageRasterizer, make_pdf: Callable[..., Path]
    ) -> None:
        handle = rasterizer.open(make_pdf(1))
        try:
            bitmap = rasterizer.render_crop(handle, 1, CropRect(0.0, 0.7, 0.35, 0.3))
        finally:
            handle.close()
        # A4 page at scale 2 is 1190x1684 pixels.
        assert bitmap.pixels.shape[2] == 3
        assert abs(bitmap.width - round(595 * 0.35 * 2)) <= 2
        assert abs(bitmap.height - round(842 * 0.3 * 2)) <= 2
        assert bitmap.crop is not None

    def test_render_crop_outside_page(
        self, rasterizer: PageRasterizer, make_pdf: Callable[..., Path]
    ) -> None:
        handle = rasterizer.open(make_pdf(1))
        try:
            with pytest.raises(ValueError):
                rasterizer.render_crop(
                    handle, 1, CropRect(5000, 5000, 10, 10, normalized=False)
                )
        finally:
            handle.close()
