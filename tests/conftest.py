"""Shared test fixtures for the permit card OCR test suite."""

from collections.abc import Callable
from pathlib import Path

import fitz  # PyMuPDF
import numpy as np
import pytest


@pytest.fixture
def sample_color_image() -> np.ndarray:
    """Create a flat mid-grey RGB test image."""
    return np.full((40, 60, 3), 100, dtype=np.uint8)


@pytest.fixture
def make_pdf(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory writing an A4 PDF with ``page_count`` pages."""

    def _make(page_count: int, name: str = "cards.pdf") -> Path:
        document = fitz.open()
        for number in range(1, page_count + 1):
            page = document.new_page(width=595, height=842)
            page.insert_text((72, 72), f"TARJETA {number}")
        path = tmp_path / name
        document.save(str(path))
        document.close()
        return path

    return _make


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"
