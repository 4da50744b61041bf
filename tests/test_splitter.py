"""Tests for splitting a recognized document into per-page files."""

from collections.abc import Callable
from pathlib import Path

import fitz  # PyMuPDF
import pytest

from transit_ocr.pipeline.models import BatchResult, PageResult
from transit_ocr.pipeline.splitter import DocumentSplitter
from transit_ocr.utils.config import SplitConfig


def _batch(source: Path, *pages: PageResult) -> BatchResult:
    return BatchResult(source_path=source, pages=list(pages))


def _page_count(path: Path) -> int:
    with fitz.open(str(path)) as document:
        return document.page_count


class TestDocumentSplitter:
    """Tests for DocumentSplitter.split."""

    def test_names_by_code_or_position(
        self, make_pdf: Callable[..., Path], tmp_path: Path
    ) -> None:
        source = make_pdf(2)
        batch = _batch(source, PageResult(1, identifier_code="1234"), PageResult(2))
        out_dir = tmp_path / "out"

        outcome = DocumentSplitter().split(source, batch, out_dir)

        assert [f.file_name for f in outcome.created] == ["1234.pdf", "PAGE_2.pdf"]
        assert outcome.errors == []
        assert outcome.summary() == {"total": 2, "created": 2, "failed": 0}
        for created in outcome.created:
            assert created.path.parent == out_dir
            assert _page_count(created.path) == 1

    def test_plate_used_without_code(
        self, make_pdf: Callable[..., Path], tmp_path: Path
    ) -> None:
        source = make_pdf(1)
        batch = _batch(source, PageResult(1, vehicle_plate="AAW207"))
        outcome = DocumentSplitter().split(source, batch, tmp_path / "out")
        assert outcome.created[0].file_name == "AAW207.pdf"
        assert outcome.created[0].vehicle_plate == "AAW207"

    def test_batch_pages_annotated_with_path(
        self, make_pdf: Callable[..., Path], tmp_path: Path
    ) -> None:
        source = make_pdf(2)
        batch = _batch(source, PageResult(1, identifier_code="1234"), PageResult(2))
        DocumentSplitter().split(source, batch, tmp_path / "out")
        assert batch.pages[0].output_path == tmp_path / "out" / "1234.pdf"
        assert batch.pages[1].output_path == tmp_path / "out" / "PAGE_2.pdf"

    def test_duplicate_names_get_page_suffix(
        self, make_pdf: Callable[..., Path], tmp_path: Path
    ) -> None:
        source = make_pdf(3)
        batch = _batch(
            source,
            PageResult(1, identifier_code="1234"),
            PageResult(2, identifier_code="5678"),
            PageResult(3, identifier_code="1234"),
        )
        outcome = DocumentSplitter().split(source, batch, tmp_path / "out")
        assert [f.file_name for f in outcome.created] == ["1234.pdf", "5678.pdf", "1234_p3.pdf"]

    def test_partial_failure_keeps_other_pages(
        self, make_pdf: Callable[..., Path], tmp_path: Path
    ) -> None:
        source = make_pdf(2)
        out_dir = tmp_path / "out"
        out_dir.mkdir()
        (out_dir / "1234.pdf").write_bytes(b"existing")
        batch = _batch(source, PageResult(1, identifier_code="1234"), PageResult(2))

        splitter = DocumentSplitter(SplitConfig(overwrite_existing=False))
        outcome = splitter.split(source, batch, out_dir)

        assert [f.page for f in outcome.created] == [2]
        assert len(outcome.errors) == 1
        error = outcome.errors[0]
        assert error.page == 1
        assert error.identifier_code == "1234"
        assert "already exists" in error.error_message
        assert (out_dir / "1234.pdf").read_bytes() == b"existing"
        assert batch.pages[0].output_path is None

    def test_page_missing_from_source(
        self, make_pdf: Callable[..., Path], tmp_path: Path
    ) -> None:
        source = make_pdf(1)
        batch = _batch(source, PageResult(1, identifier_code="1234"), PageResult(5))
        outcome = DocumentSplitter().split(source, batch, tmp_path / "out")
        assert [f.page for f in outcome.created] == [1]
        assert [e.page for e in outcome.errors] == [5]

    def test_existing_file_overwritten_by_default(
        self, make_pdf: Callable[..., Path], tmp_path: Path
    ) -> None:
        source = make_pdf(1)
        out_dir = tmp_path / "out"
        out_dir.mkdir()
        (out_dir / "PAGE_1.pdf").write_bytes(b"old")
        outcome = DocumentSplitter().split(source, _batch(source, PageResult(1)), out_dir)
        assert outcome.errors == []
        assert _page_count(out_dir / "PAGE_1.pdf") == 1

    def test_missing_source(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            DocumentSplitter().split(tmp_path / "gone.pdf", BatchResult(tmp_path), tmp_path)

    def test_unsafe_characters_replaced(self) -> None:
        splitter = DocumentSplitter()
        assert splitter.base_name(PageResult(1, vehicle_plate="AB/12 3")) == "AB_12_3"
        assert splitter.base_name(PageResult(7)) == "PAGE_7"
