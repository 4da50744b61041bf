"""Result structures for batch recognition and document splitting."""

from dataclasses import asdict, dataclass, field
from enum import StrEnum
from pathlib import Path


class RunState(StrEnum):
    """Lifecycle states of one batch run."""

    IDLE = "idle"
    LOADING = "loading"
    PROCESSING_PAGE = "processing_page"
    CLEANUP = "cleanup"
    DONE = "done"
    ERROR = "error"


@dataclass
class PageResult:
    """Structured fields recovered from one page.

    ``raw_text`` only lives while the page is being processed; the
    orchestrator drops it before returning the batch.
    """

    page_number: int
    identifier_code: str | None = None
    vehicle_plate: str | None = None
    success: bool = True
    error: str | None = None
    raw_text: str | None = None
    code_strategy: str | None = None
    plate_strategy: str | None = None
    output_path: Path | None = None

    def trim(self) -> None:
        """Drop the recognized text."""
        self.raw_text = None

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["output_path"] = str(self.output_path) if self.output_path else None
        return data


@dataclass
class BatchResult:
    """Page results of one document, in page order."""

    source_path: Path
    pages: list[PageResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.pages)

    @property
    def successful(self) -> int:
        return sum(1 for page in self.pages if page.success)

    @property
    def failed(self) -> int:
        return self.total - self.successful

    def summary(self) -> dict[str, int]:
        return {"total": self.total, "successful": self.successful, "failed": self.failed}


@dataclass
class SplitFile:
    """A single-page file written by the splitter."""

    page: int
    identifier_code: str | None
    vehicle_plate: str | None
    file_name: str
    path: Path


@dataclass
class SplitError:
    """A page the splitter could not write."""

    page: int
    identifier_code: str | None
    error_message: str


@dataclass
class SplitOutcome:
    """Per-page results of one split invocation."""

    output_dir: Path
    created: list[SplitFile] = field(default_factory=list)
    errors: list[SplitError] = field(default_factory=list)
    total: int = 0

    def summary(self) -> dict[str, int]:
        return {
            "total": self.total,
            "created": len(self.created),
            "failed": len(self.errors),
        }
