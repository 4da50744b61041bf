"""Pydantic request/response schemas for the FastAPI endpoints."""

from pydantic import BaseModel


class PageResultResponse(BaseModel):
    """Response schema for one recognized page."""

    page_number: int
    identifier_code: str | None = None
    vehicle_plate: str | None = None
    success: bool = True
    error: str | None = None
    code_strategy: str | None = None
    plate_strategy: str | None = None
    output_path: str | None = None


class BatchProcessResponse(BaseModel):
    """Response schema for a batch recognition request."""

    success: bool
    filename: str
    total: int
    successful: int
    failed: int
    pages: list[PageResultResponse]
    processing_time_ms: float


class SplitFileResponse(BaseModel):
    """Response schema for a file written by the splitter."""

    page: int
    identifier_code: str | None = None
    vehicle_plate: str | None = None
    file_name: str
    path: str


class SplitErrorResponse(BaseModel):
    """Response schema for a page the splitter could not write."""

    page: int
    identifier_code: str | None = None
    error_message: str


class SplitResponse(BaseModel):
    """Response schema for a recognize-and-split request."""

    success: bool
    filename: str
    output_dir: str
    total: int
    created: int
    failed: int
    files: list[SplitFileResponse]
    errors: list[SplitErrorResponse]
    pages: list[PageResultResponse]


class CaseFileFieldsResponse(BaseModel):
    """Response schema for parsed case-file fields."""

    case_number: str | None = None
    case_year: str | None = None
    resolution_number: str | None = None
    date: str | None = None
    technical_report: str | None = None
    company_name: str | None = None
    business_unit: str | None = None
    file_number: str | None = None


class CaseFileResponse(BaseModel):
    """Response schema for a case-file extraction request."""

    success: bool
    filename: str
    fields: CaseFileFieldsResponse | None = None
    confidence: float = 0.0
    error: str | None = None
    processing_time_ms: float


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
    poppler_available: bool
