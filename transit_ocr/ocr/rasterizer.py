"""Page rasterization for permit card PDFs.

Full pages are rendered through poppler via pdf2image, one page at a
time. Cropped regions are rendered with PyMuPDF straight into an
offscreen pixmap sized to the crop, so the rest of the page is never
rasterized. Both paths apply the same contrast stretch.
"""

from dataclasses import dataclass
from pathlib import Path

import fitz  # PyMuPDF
import numpy as np
from pdf2image import convert_from_path

from transit_ocr.errors import DocumentLoadError, PageNotFound
from transit_ocr.preprocessing.contrast import stretch_contrast, to_gray
from transit_ocr.utils.config import RasterConfig
from transit_ocr.utils.logger import get_logger

logger = get_logger(__name__)

_POINTS_PER_INCH = 72


@dataclass
class CropRect:
    """Rectangle on a page, either normalized (0-1) or in rendered pixels.

    Pixel bounds are relative to a full-page render at the scale passed
    to :meth:`PageRasterizer.render_crop`.
    """

    x: float
    y: float
    width: float
    height: float
    normalized: bool = True

    def to_page_rect(self, page_rect: fitz.Rect, scale: float) -> fitz.Rect:
        """Convert to PDF point coordinates, clamped to the page."""
        if self.normalized:
            x0 = page_rect.x0 + self.x * page_rect.width
            y0 = page_rect.y0 + self.y * page_rect.height
            x1 = x0 + self.width * page_rect.width
            y1 = y0 + self.height * page_rect.height
        else:
            x0 = page_rect.x0 + self.x / scale
            y0 = page_rect.y0 + self.y / scale
            x1 = x0 + self.width / scale
            y1 = y0 + self.height / scale
        return fitz.Rect(x0, y0, x1, y1) & page_rect


class PageBitmap:
    """Pixel buffer for one rendered page or crop.

    The buffer belongs to whoever requested it and must be released once
    recognition is done; high-scale renders are several megabytes each.
    """

    def __init__(
        self,
        pixels: np.ndarray,
        page_number: int,
        scale: float,
        rotation: int = 0,
        crop: CropRect | None = None,
    ) -> None:
        self._pixels: np.ndarray | None = pixels
        self.page_number = page_number
        self.scale = scale
        self.rotation = rotation
        self.crop = crop

    @property
    def pixels(self) -> np.ndarray:
        if self._pixels is None:
            raise ValueError(f"Bitmap for page {self.page_number} already released")
        return self._pixels

    @property
    def released(self) -> bool:
        return self._pixels is None

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def release(self) -> None:
        """Drop the pixel buffer. Safe to call more than once."""
        self._pixels = None


class DocumentHandle:
    """An open source PDF, owned by one batch run.

    Args:
        path: Location of the PDF on disk.
        document: The PyMuPDF document opened from ``path``.
    """

    def __init__(self, path: Path, document: fitz.Document) -> None:
        self.path = path
        self._document: fitz.Document | None = document
        self.page_count = document.page_count

    @property
    def document(self) -> fitz.Document:
        if self._document is None:
            raise ValueError(f"Document {self.path} is closed")
        return self._document

    @property
    def closed(self) -> bool:
        return self._document is None

    def check_page(self, page_number: int) -> None:
        """Raise :class:`PageNotFound` unless ``page_number`` is 1-based and in range."""
        if not 1 <= page_number <= self.page_count:
            raise PageNotFound(page_number, self.page_count)

    def close(self) -> None:
        """Close the underlying document. Safe to call more than once."""
        if self._document is not None:
            self._document.close()
            self._document = None
            logger.debug("Closed document %s", self.path)


class PageRasterizer:
    """Renders PDF pages and page regions to contrast-stretched bitmaps.

    Args:
        config: Rasterization settings (scales, contrast factor).
    """

    def __init__(self, config: RasterConfig | None = None) -> None:
        self.config = config or RasterConfig()

    def open(self, pdf_path: Path) -> DocumentHandle:
        """Open a PDF for rendering.

        Args:
            pdf_path: Path to the PDF file.

        Returns:
            Handle exposing the page count; the caller must close it.

        Raises:
            FileNotFoundError: If the file does not exist.
            DocumentLoadError: If the file cannot be parsed as a PDF.
        """
        path = Path(pdf_path)
        if not path.exists():
            raise FileNotFoundError(f"PDF file not found: {path}")
        try:
            document = fitz.open(str(path))
        except Exception as exc:
            raise DocumentLoadError(f"Could not open {path}: {exc}") from exc
        if not document.is_pdf:
            document.close()
            raise DocumentLoadError(f"{path} is not a PDF document")
        logger.info("Opened %s (%d pages)", path.name, document.page_count)
        return DocumentHandle(path, document)

    def render(
        self,
        handle: DocumentHandle,
        page_number: int,
        scale: float | None = None,
        rotation: int = 0,
    ) -> PageBitmap:
        """Render one full page.

        Args:
            handle: Open document handle.
            page_number: 1-based page number.
            scale: Zoom relative to 72 DPI. Defaults to the configured scale.
            rotation: Clockwise rotation in degrees (multiple of 90).

        Returns:
            Contrast-stretched bitmap of the page.

        Raises:
            PageNotFound: If the page number is out of range.
        """
        handle.check_page(page_number)
        scale = scale or self.config.scale
        dpi = round(_POINTS_PER_INCH * scale)

        images = convert_from_path(
            str(handle.path),
            dpi=dpi,
            first_page=page_number,
            last_page=page_number,
        )
        image = images[0]
        if rotation % 360:
            image = image.rotate(-rotation, expand=True)
        pixels = np.array(image.convert("RGB"))
        image.close()

        logger.debug(
            "Rendered page %d at %d DPI (%dx%d)",
            page_number,
            dpi,
            pixels.shape[1],
            pixels.shape[0],
        )
        return PageBitmap(self._finish(pixels), page_number, scale, rotation)

    def render_crop(
        self,
        handle: DocumentHandle,
        page_number: int,
        rect: CropRect,
        scale: float | None = None,
    ) -> PageBitmap:
        """Render only a sub-rectangle of a page.

        Args:
            handle: Open document handle.
            page_number: 1-based page number.
            rect: Region to render.
            scale: Zoom relative to 72 DPI. Defaults to the configured crop scale.

        Returns:
            Contrast-stretched bitmap covering just ``rect``.

        Raises:
            PageNotFound: If the page number is out of range.
            ValueError: If the rectangle lies outside the page.
        """
        handle.check_page(page_number)
        scale = scale or self.config.crop_scale

        page = handle.document[page_number - 1]
        clip = rect.to_page_rect(page.rect, scale)
        if clip.is_empty:
            raise ValueError(f"Crop {rect} does not intersect page {page_number}")

        pixmap = page.get_pixmap(matrix=fitz.Matrix(scale, scale), clip=clip, alpha=False)
        pixels = (
            np.frombuffer(pixmap.samples, dtype=np.uint8)
            .reshape(pixmap.height, pixmap.width, pixmap.n)
            .copy()
        )
        del pixmap

        logger.debug(
            "Rendered crop of page %d at scale %.1f (%dx%d)",
            page_number,
            scale,
            pixels.shape[1],
            pixels.shape[0],
        )
        return PageBitmap(self._finish(pixels), page_number, scale, crop=rect)

    def _finish(self, pixels: np.ndarray) -> np.ndarray:
        if self.config.grayscale:
            pixels = to_gray(pixels)
        return stretch_contrast(pixels, self.config.contrast)
