"""Exception taxonomy for the recognition and splitting pipeline.

A field that cannot be recovered is not an error: extractors return
``None`` for it. Only the conditions below are raised.
"""


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class DocumentLoadError(PipelineError):
    """The source document could not be opened. Fatal for a batch run."""


class PageNotFound(PipelineError):
    """A page number outside ``1..page_count`` was requested."""

    def __init__(self, page_number: int, page_count: int) -> None:
        super().__init__(
            f"Page {page_number} out of range (document has {page_count} pages)"
        )
        self.page_number = page_number
        self.page_count = page_count


class RecognitionFailure(PipelineError):
    """The OCR engine raised or returned no text for a bitmap."""


class SplitWriteFailure(PipelineError):
    """A single page could not be written during document splitting."""

    def __init__(self, page_number: int, message: str) -> None:
        super().__init__(f"Page {page_number}: {message}")
        self.page_number = page_number


class BatchAborted(PipelineError):
    """An unexpected exception stopped a batch run mid-document."""

    def __init__(self, page_number: int | None, cause: BaseException) -> None:
        where = f"page {page_number}" if page_number is not None else "startup"
        super().__init__(f"Batch aborted at {where}: {cause}")
        self.page_number = page_number
