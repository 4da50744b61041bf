"""Single-document extraction of case-file resolution fields.

Renders one page of a resolution PDF, recognizes it and parses the case
number, dates and company details from the text. Only one extraction
runs at a time per extractor; a running extraction can be cancelled,
which takes effect around the recognition call.
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from transit_ocr.errors import PipelineError
from transit_ocr.extraction.case_file_parser import CaseFileFields, CaseFileParser
from transit_ocr.ocr.rasterizer import DocumentHandle, PageBitmap, PageRasterizer
from transit_ocr.ocr.tesseract_engine import CharacterSet, SegmentationMode, TesseractEngine
from transit_ocr.ocr.text_cleanup import normalize_lines
from transit_ocr.utils.config import AppConfig
from transit_ocr.utils.logger import get_logger

logger = get_logger(__name__)

CANCELLED = "cancelled"

ExtractionProgress = Callable[[int, str], None]


@dataclass
class CaseFileExtraction:
    """Outcome of one case-file extraction."""

    success: bool
    fields: CaseFileFields | None = None
    confidence: float = 0.0
    error: str | None = None
    processing_time: float = 0.0

    def to_dict(self) -> dict[str, object]:
        return {
            "success": self.success,
            "fields": self.fields.to_dict() if self.fields else None,
            "confidence": self.confidence,
            "error": self.error,
            "processing_time": self.processing_time,
        }


class CaseFileExtractor:
    """Extracts case-file fields from one page of a resolution PDF.

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or AppConfig()
        self.rasterizer = PageRasterizer(self.config.raster)
        self.ocr_engine = TesseractEngine(self.config.ocr)
        self.parser = CaseFileParser()
        self._busy = False
        self._cancel_requested = False

    @property
    def is_processing(self) -> bool:
        return self._busy

    def cancel(self) -> None:
        """Ask the running extraction to stop at its next checkpoint."""
        if self.is_processing:
            logger.info("Cancellation requested")
            self._cancel_requested = True

    async def extract(
        self,
        pdf_path: Path | str,
        page_number: int = 1,
        progress: ExtractionProgress | None = None,
    ) -> CaseFileExtraction:
        """Extract case-file fields from one page.

        Args:
            pdf_path: Path to the resolution PDF.
            page_number: 1-based page holding the resolution heading.
            progress: Optional ``progress(percent, message)`` callback.

        Returns:
            Parsed fields, or ``success=False`` with the reason.
        """
        if self.is_processing:
            logger.warning("Extraction already in progress, rejecting %s", pdf_path)
            return CaseFileExtraction(success=False, error="extraction already in progress")

        self._busy = True
        self._cancel_requested = False
        start = time.perf_counter()
        handle: DocumentHandle | None = None
        bitmap: PageBitmap | None = None

        try:
            self._report(progress, 10, "Opening document")
            handle = await asyncio.to_thread(self.rasterizer.open, Path(pdf_path))

            self._report(progress, 30, "Rendering page")
            bitmap = await asyncio.to_thread(self.rasterizer.render, handle, page_number)

            if self._cancel_requested:
                return self._cancelled(start)
            self._report(progress, 50, "Recognizing text")
            recognition = await asyncio.to_thread(
                self.ocr_engine.recognize,
                bitmap,
                CharacterSet.FULL,
                SegmentationMode.AUTO,
            )
            bitmap.release()
            if self._cancel_requested:
                return self._cancelled(start)

            self._report(progress, 80, "Parsing fields")
            fields = self.parser.parse(normalize_lines(recognition.text))
            self._report(progress, 100, "Done")
        except (FileNotFoundError, PipelineError) as exc:
            logger.error("Case-file extraction failed for %s: %s", pdf_path, exc)
            return CaseFileExtraction(
                success=False,
                error=str(exc),
                processing_time=time.perf_counter() - start,
            )
        finally:
            if bitmap is not None:
                bitmap.release()
            if handle is not None:
                handle.close()
            self._busy = False
            self._cancel_requested = False

        elapsed = time.perf_counter() - start
        if fields is None:
            return CaseFileExtraction(
                success=False,
                confidence=recognition.confidence,
                error="no text to parse",
                processing_time=elapsed,
            )
        logger.info("Case-file extraction finished in %.2fs", elapsed)
        return CaseFileExtraction(
            success=True,
            fields=fields,
            confidence=recognition.confidence,
            processing_time=elapsed,
        )

    def _cancelled(self, start: float) -> CaseFileExtraction:
        logger.info("Case-file extraction cancelled")
        return CaseFileExtraction(
            success=False, error=CANCELLED, processing_time=time.perf_counter() - start
        )

    @staticmethod
    def _report(progress: ExtractionProgress | None, percent: int, message: str) -> None:
        if progress is None:
            return
        try:
            progress(percent, message)
        except Exception:
            logger.warning("Progress callback failed at %d%%", percent, exc_info=True)
