"""FastAPI application for the permit card OCR service.

Provides REST endpoints for batch recognition of permit card PDFs,
per-card splitting, case-file extraction, and health checks.
"""

import asyncio
import shutil
import tempfile
import time
from pathlib import Path
from typing import Annotated, NoReturn

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from transit_ocr.errors import DocumentLoadError, PipelineError
from transit_ocr.pipeline.batch_processor import BatchOcrProcessor
from transit_ocr.pipeline.case_file_extractor import CaseFileExtractor
from transit_ocr.pipeline.models import PageResult
from transit_ocr.pipeline.splitter import DocumentSplitter
from transit_ocr.utils.config import load_config
from transit_ocr.utils.logger import get_logger

from .schemas import (
    BatchProcessResponse,
    CaseFileFieldsResponse,
    CaseFileResponse,
    HealthResponse,
    PageResultResponse,
    SplitErrorResponse,
    SplitFileResponse,
    SplitResponse,
)

logger = get_logger(__name__)

VERSION = "1.0.0"

app = FastAPI(
    title="Permit Card OCR API",
    description="Recognize identifier codes and plates on permit cards and split scans per card",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ALLOWED_CONTENT_TYPES = {
    "application/pdf",
    "application/octet-stream",
}


def _check_upload(file: UploadFile) -> None:
    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )


async def _save_upload(file: UploadFile, directory: Path) -> Path:
    """Write an uploaded PDF into ``directory`` and return its path."""
    path = directory / Path(file.filename or "document.pdf").name
    path.write_bytes(await file.read())
    return path


def _page_response(page: PageResult) -> PageResultResponse:
    return PageResultResponse(
        page_number=page.page_number,
        identifier_code=page.identifier_code,
        vehicle_plate=page.vehicle_plate,
        success=page.success,
        error=page.error,
        code_strategy=page.code_strategy,
        plate_strategy=page.plate_strategy,
        output_path=str(page.output_path) if page.output_path else None,
    )


def _raise_http(exc: Exception, action: str) -> NoReturn:
    logger.error("%s failed: %s", action, exc)
    status_code = 422 if isinstance(exc, DocumentLoadError) else 500
    raise HTTPException(status_code=status_code, detail=str(exc)) from exc


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    return HealthResponse(
        status="healthy",
        version=VERSION,
        tesseract_available=shutil.which("tesseract") is not None,
        poppler_available=shutil.which("pdftoppm") is not None,
    )


@app.post("/batch/process", response_model=BatchProcessResponse)
async def process_batch(
    file: Annotated[UploadFile, File(...)],
) -> BatchProcessResponse:
    """Recognize the identifier code and plate on every page of a PDF.

    Args:
        file: Uploaded permit card PDF.

    Returns:
        Per-page results and success/failure counts.
    """
    start_time = time.time()
    _check_upload(file)

    try:
        processor = BatchOcrProcessor(load_config())
        with tempfile.TemporaryDirectory() as tmp:
            pdf_path = await _save_upload(file, Path(tmp))
            batch = await processor.process_document(pdf_path)
    except (PipelineError, OSError) as exc:
        _raise_http(exc, "Batch recognition")

    return BatchProcessResponse(
        success=batch.successful > 0,
        filename=file.filename or "document.pdf",
        total=batch.total,
        successful=batch.successful,
        failed=batch.failed,
        pages=[_page_response(page) for page in batch.pages],
        processing_time_ms=(time.time() - start_time) * 1000,
    )


@app.post("/batch/split", response_model=SplitResponse)
async def split_batch(
    file: Annotated[UploadFile, File(...)],
    output_dir: Annotated[str, Query(min_length=1)],
) -> SplitResponse:
    """Recognize a PDF and write one file per page into ``output_dir``.

    Args:
        file: Uploaded permit card PDF.
        output_dir: Server-side destination directory.

    Returns:
        Created files, per-page errors, and the recognized pages.
    """
    _check_upload(file)

    try:
        config = load_config()
        processor = BatchOcrProcessor(config)
        splitter = DocumentSplitter(config.split)
        with tempfile.TemporaryDirectory() as tmp:
            pdf_path = await _save_upload(file, Path(tmp))
            batch = await processor.process_document(pdf_path)
            outcome = await asyncio.to_thread(
                splitter.split, pdf_path, batch, Path(output_dir)
            )
    except (PipelineError, OSError) as exc:
        _raise_http(exc, "Document split")

    return SplitResponse(
        success=not outcome.errors,
        filename=file.filename or "document.pdf",
        output_dir=str(outcome.output_dir),
        total=outcome.total,
        created=len(outcome.created),
        failed=len(outcome.errors),
        files=[
            SplitFileResponse(
                page=created.page,
                identifier_code=created.identifier_code,
                vehicle_plate=created.vehicle_plate,
                file_name=created.file_name,
                path=str(created.path),
            )
            for created in outcome.created
        ],
        errors=[
            SplitErrorResponse(
                page=error.page,
                identifier_code=error.identifier_code,
                error_message=error.error_message,
            )
            for error in outcome.errors
        ],
        pages=[_page_response(page) for page in batch.pages],
    )


@app.post("/casefile", response_model=CaseFileResponse)
async def extract_case_file(
    file: Annotated[UploadFile, File(...)],
    page: Annotated[int, Query(ge=1)] = 1,
) -> CaseFileResponse:
    """Extract case-file fields from one page of a resolution PDF.

    Args:
        file: Uploaded resolution PDF.
        page: 1-based page to read.

    Returns:
        Parsed fields, or ``success=False`` with the reason.
    """
    _check_upload(file)

    extractor = CaseFileExtractor(load_config())
    with tempfile.TemporaryDirectory() as tmp:
        pdf_path = await _save_upload(file, Path(tmp))
        extraction = await extractor.extract(pdf_path, page)

    return CaseFileResponse(
        success=extraction.success,
        filename=file.filename or "document.pdf",
        fields=(
            CaseFileFieldsResponse(**extraction.fields.to_dict())
            if extraction.fields
            else None
        ),
        confidence=extraction.confidence,
        error=extraction.error,
        processing_time_ms=extraction.processing_time * 1000,
    )
