"""Splitting a recognized document into one PDF per page.

Each page is written under the name recovered for it: the identifier
code, else the vehicle plate, else a positional ``PAGE_<n>`` name. A page
that cannot be written is recorded as an error and the remaining pages
are still attempted.
"""

from pathlib import Path

import fitz  # PyMuPDF

from transit_ocr.errors import SplitWriteFailure
from transit_ocr.utils.config import SplitConfig
from transit_ocr.utils.logger import get_logger

from .models import BatchResult, PageResult, SplitError, SplitFile, SplitOutcome

logger = get_logger(__name__)

_UNSAFE_NAME_CHARS = str.maketrans({char: "_" for char in '<>:"/\\|?* '})


class DocumentSplitter:
    """Writes each page of a source PDF to its own file.

    Args:
        config: Split settings (fallback prefix, overwrite policy).
    """

    def __init__(self, config: SplitConfig | None = None) -> None:
        self.config = config or SplitConfig()

    def base_name(self, page: PageResult) -> str:
        """Output name for a page, without extension."""
        name = page.identifier_code or page.vehicle_plate
        if not name:
            return f"{self.config.fallback_prefix}{page.page_number}"
        return name.strip().translate(_UNSAFE_NAME_CHARS)

    def split(
        self,
        pdf_path: Path | str,
        batch_result: BatchResult,
        output_dir: Path | str,
    ) -> SplitOutcome:
        """Split a document using the fields recovered by a batch run.

        Page records in ``batch_result`` get their ``output_path`` set for
        every page written successfully.

        Args:
            pdf_path: The source PDF the batch was run on.
            batch_result: Page results of that batch run.
            output_dir: Destination directory, created if missing.

        Returns:
            Created files and per-page errors.

        Raises:
            FileNotFoundError: If the source PDF does not exist.
        """
        source_path = Path(pdf_path)
        destination = Path(output_dir)
        if not source_path.exists():
            raise FileNotFoundError(f"PDF file not found: {source_path}")
        destination.mkdir(parents=True, exist_ok=True)

        outcome = SplitOutcome(output_dir=destination, total=len(batch_result.pages))
        used_names: set[str] = set()

        logger.info(
            "Splitting %s into %d files under %s",
            source_path.name,
            outcome.total,
            destination,
        )
        source = fitz.open(str(source_path))
        try:
            for page in batch_result.pages:
                file_name = self._unique_file_name(page, used_names)
                try:
                    data = self._copy_page(source, page.page_number)
                    path = self._write_file(destination, file_name, data, page.page_number)
                except (SplitWriteFailure, OSError, ValueError, RuntimeError) as exc:
                    logger.warning("Could not split page %d: %s", page.page_number, exc)
                    outcome.errors.append(
                        SplitError(
                            page=page.page_number,
                            identifier_code=page.identifier_code,
                            error_message=str(exc),
                        )
                    )
                    continue

                used_names.add(file_name)
                page.output_path = path
                outcome.created.append(
                    SplitFile(
                        page=page.page_number,
                        identifier_code=page.identifier_code,
                        vehicle_plate=page.vehicle_plate,
                        file_name=file_name,
                        path=path,
                    )
                )
                logger.debug("Page %d written to %s", page.page_number, path)
        finally:
            source.close()

        logger.info(
            "Split complete: %d created, %d failed",
            len(outcome.created),
            len(outcome.errors),
        )
        return outcome

    def _unique_file_name(self, page: PageResult, used_names: set[str]) -> str:
        base = self.base_name(page)
        file_name = f"{base}.pdf"
        if file_name in used_names:
            file_name = f"{base}_p{page.page_number}.pdf"
            logger.info(
                "Name %s.pdf already used in this run, page %d saved as %s",
                base,
                page.page_number,
                file_name,
            )
        return file_name

    @staticmethod
    def _copy_page(source: fitz.Document, page_number: int) -> bytes:
        """Copy one 1-based page into a new document and serialize it."""
        if not 1 <= page_number <= source.page_count:
            raise SplitWriteFailure(
                page_number, f"source document has {source.page_count} pages"
            )
        single = fitz.open()
        try:
            single.insert_pdf(source, from_page=page_number - 1, to_page=page_number - 1)
            return single.tobytes()
        finally:
            single.close()

    def _write_file(
        self, directory: Path, file_name: str, data: bytes, page_number: int
    ) -> Path:
        path = directory / file_name
        if path.exists() and not self.config.overwrite_existing:
            raise SplitWriteFailure(page_number, f"{path} already exists")
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise SplitWriteFailure(page_number, f"could not write {path}: {exc}") from exc
        return path
