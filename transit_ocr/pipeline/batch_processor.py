"""Batch recognition of multi-page permit card PDFs.

Drives rasterization, OCR, region segmentation and field extraction one
page at a time. Rendering and recognition run in a worker thread and are
awaited sequentially, so the event loop stays free between pages and the
OCR engine is never entered concurrently.
"""

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path

from transit_ocr.errors import (
    BatchAborted,
    DocumentLoadError,
    PageNotFound,
    RecognitionFailure,
)
from transit_ocr.extraction.identifier import IdentifierCodeExtractor
from transit_ocr.extraction.plate import VehiclePlateExtractor
from transit_ocr.ocr.rasterizer import CropRect, DocumentHandle, PageBitmap, PageRasterizer
from transit_ocr.ocr.region_segmenter import RegionSegmenter
from transit_ocr.ocr.tesseract_engine import (
    CharacterSet,
    RecognitionResult,
    SegmentationMode,
    TesseractEngine,
)
from transit_ocr.utils.config import AppConfig
from transit_ocr.utils.logger import get_logger

from .models import BatchResult, PageResult, RunState

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int, PageResult], None]


@dataclass
class BatchRun:
    """State owned by a single batch run.

    Nothing here is shared between runs; the handle and bitmaps are
    released during cleanup whatever the outcome.
    """

    source_path: Path
    state: RunState = RunState.IDLE
    handle: DocumentHandle | None = None
    total_pages: int = 0
    current_page: int | None = None
    results: list[PageResult] = field(default_factory=list)
    live_bitmaps: list[PageBitmap] = field(default_factory=list)
    history: list[RunState] = field(default_factory=list)

    def transition(self, state: RunState) -> None:
        logger.debug("Batch %s: %s -> %s", self.source_path.name, self.state, state)
        self.state = state
        self.history.append(state)


class BatchOcrProcessor:
    """Recognizes every page of a permit card PDF.

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or AppConfig()
        self.rasterizer = PageRasterizer(self.config.raster)
        self.ocr_engine = TesseractEngine(self.config.ocr)
        self.segmenter = RegionSegmenter(self.config.segmentation.max_region_lines)
        self.code_extractor = IdentifierCodeExtractor(self.config.extraction)
        self.plate_extractor = VehiclePlateExtractor(self.config.extraction)
        self._progress_callback: ProgressCallback | None = None
        self.last_run: BatchRun | None = None

    def set_progress_callback(self, callback: ProgressCallback | None) -> None:
        """Register ``callback(page_number, total_pages, page_result)``.

        The callback runs on the event loop once per page, in page order.
        """
        self._progress_callback = callback

    async def process_document(self, pdf_path: Path | str) -> BatchResult:
        """Recognize every page of a document.

        A page whose recognition fails is recorded as a failed page and the
        run continues. Failing to open the document, or any unexpected
        error, ends the run; cleanup always happens first.

        Args:
            pdf_path: Path to the source PDF.

        Returns:
            One page result per page, in page order, without raw text.

        Raises:
            FileNotFoundError: If the PDF does not exist.
            DocumentLoadError: If the PDF cannot be opened.
            BatchAborted: If an unexpected error interrupts the run.
        """
        run = BatchRun(Path(pdf_path))
        self.last_run = run
        logger.info("Processing document: %s", run.source_path.name)

        try:
            run.transition(RunState.LOADING)
            run.handle = await asyncio.to_thread(self.rasterizer.open, run.source_path)
            run.total_pages = run.handle.page_count

            for page_number in range(1, run.total_pages + 1):
                run.transition(RunState.PROCESSING_PAGE)
                run.current_page = page_number
                result = await self._process_page(run, page_number)
                run.results.append(result)
                self._notify(page_number, run.total_pages, result)
                result.trim()
                await asyncio.sleep(0)
        except (FileNotFoundError, DocumentLoadError) as exc:
            run.transition(RunState.ERROR)
            logger.error("Could not open %s: %s", run.source_path, exc)
            raise
        except Exception as exc:
            run.transition(RunState.ERROR)
            logger.error("Batch aborted on page %s: %s", run.current_page, exc)
            raise BatchAborted(run.current_page, exc) from exc
        finally:
            self._cleanup(run)

        run.transition(RunState.DONE)
        batch = BatchResult(source_path=run.source_path, pages=run.results)
        logger.info(
            "Processed %d pages from %s (%d successful, %d failed)",
            batch.total,
            run.source_path.name,
            batch.successful,
            batch.failed,
        )
        return batch

    async def _process_page(self, run: BatchRun, page_number: int) -> PageResult:
        logger.info("Processing page %d of %d", page_number, run.total_pages)
        try:
            recognition = await self._recognize_page(run, page_number)
        except (RecognitionFailure, PageNotFound) as exc:
            logger.warning("Page %d failed: %s", page_number, exc)
            return PageResult(page_number=page_number, success=False, error=str(exc))

        regions = self.segmenter.segment(recognition.text)
        code = await self.code_extractor.extract(
            regions, read_crop=partial(self._read_code_crop, run, page_number)
        )
        plate = self.plate_extractor.extract(regions)

        logger.info(
            "Page %d: code=%s plate=%s (confidence %.1f)",
            page_number,
            code.value or "-",
            plate.value or "-",
            recognition.confidence,
        )
        return PageResult(
            page_number=page_number,
            identifier_code=code.value,
            vehicle_plate=plate.value,
            raw_text=recognition.text,
            code_strategy=code.strategy,
            plate_strategy=plate.strategy,
        )

    async def _recognize_page(self, run: BatchRun, page_number: int) -> RecognitionResult:
        async with self._bitmap(
            run, self.rasterizer.render, page_number, self.config.raster.scale
        ) as bitmap:
            return await asyncio.to_thread(
                self.ocr_engine.recognize,
                bitmap,
                CharacterSet.FULL,
                SegmentationMode.AUTO,
            )

    async def _read_code_crop(
        self, run: BatchRun, page_number: int, rect: CropRect
    ) -> str | None:
        try:
            async with self._bitmap(
                run,
                self.rasterizer.render_crop,
                page_number,
                rect,
                self.config.raster.crop_scale,
            ) as bitmap:
                result = await asyncio.to_thread(
                    self.ocr_engine.recognize,
                    bitmap,
                    CharacterSet.DIGITS,
                    SegmentationMode.SINGLE_BLOCK,
                )
        except RecognitionFailure as exc:
            logger.warning("Digits-only pass on page %d found nothing: %s", page_number, exc)
            return None
        return result.text

    @asynccontextmanager
    async def _bitmap(
        self, run: BatchRun, render: Callable[..., PageBitmap], *args: object
    ) -> AsyncIterator[PageBitmap]:
        """Render a bitmap for the duration of a ``async with`` block."""
        bitmap = await asyncio.to_thread(render, run.handle, *args)
        run.live_bitmaps.append(bitmap)
        try:
            yield bitmap
        finally:
            bitmap.release()
            run.live_bitmaps.remove(bitmap)

    def _notify(self, page_number: int, total_pages: int, result: PageResult) -> None:
        if self._progress_callback is None:
            return
        try:
            self._progress_callback(page_number, total_pages, result)
        except Exception:
            logger.warning("Progress callback failed on page %d", page_number, exc_info=True)

    def _cleanup(self, run: BatchRun) -> None:
        run.transition(RunState.CLEANUP)
        for bitmap in run.live_bitmaps:
            bitmap.release()
        run.live_bitmaps.clear()
        if run.handle is not None:
            run.handle.close()
            run.handle = None
        for result in run.results:
            result.trim()
