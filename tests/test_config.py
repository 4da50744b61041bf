"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from transit_ocr.utils.config import (
    AppConfig,
    ExtractionConfig,
    OCRConfig,
    RasterConfig,
    SegmentationConfig,
    SplitConfig,
    load_config,
)


class TestRasterConfig:
    """Tests for RasterConfig defaults and bounds."""

    def test_defaults(self) -> None:
        cfg = RasterConfig()
        assert cfg.scale == 4.0
        assert cfg.crop_scale == 4.0
        assert cfg.contrast == 1.4
        assert cfg.grayscale is False

    def test_contrast_out_of_range(self) -> None:
        with pytest.raises(ValidationError):
            RasterConfig(contrast=3.0)


class TestOCRConfig:
    """Tests for OCRConfig defaults."""

    def test_defaults(self) -> None:
        cfg = OCRConfig()
        assert cfg.lang == "spa"
        assert cfg.tesseract_cmd is None
        assert cfg.preserve_interword_spaces is True


class TestExtractionConfig:
    """Tests for ExtractionConfig defaults."""

    def test_defaults(self) -> None:
        cfg = ExtractionConfig()
        assert (cfg.year_min, cfg.year_max) == (2000, 2030)
        assert cfg.heading_window == 8
        assert "RADIO" in cfg.plate_blacklist
        assert "EMPRESA" in cfg.code_exclusion_keywords
        assert (cfg.code_crop.x, cfg.code_crop.y) == (0.0, 0.70)

    def test_lists_not_shared(self) -> None:
        first = ExtractionConfig()
        first.plate_blacklist.append("EXTRA")
        assert "EXTRA" not in ExtractionConfig().plate_blacklist


class TestAppConfig:
    """Tests for the top-level AppConfig."""

    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert isinstance(cfg.raster, RasterConfig)
        assert isinstance(cfg.segmentation, SegmentationConfig)
        assert isinstance(cfg.split, SplitConfig)
        assert cfg.segmentation.max_region_lines == 10
        assert cfg.split.fallback_prefix == "PAGE_"
        assert cfg.log_level == "INFO"

    def test_nested_override(self) -> None:
        cfg = AppConfig(split=SplitConfig(overwrite_existing=False), log_level="DEBUG")
        assert cfg.split.overwrite_existing is False
        assert cfg.log_level == "DEBUG"


class TestLoadConfig:
    """Tests for the load_config function."""

    def test_load_default_config(self, config_dir: Path) -> None:
        cfg = load_config(config_dir / "config.yaml")
        assert isinstance(cfg, AppConfig)
        assert cfg.ocr.lang == "spa"
        assert cfg.extraction.code_crop.width == pytest.approx(0.35)

    def test_load_missing_file_returns_defaults(self) -> None:
        cfg = load_config(Path("/nonexistent/path/config.yaml"))
        assert cfg == AppConfig()

    def test_load_custom_yaml(self, tmp_path: Path) -> None:
        config_data = {
            "raster": {"scale": 3.0},
            "extraction": {"year_max": 2035},
            "log_level": "DEBUG",
        }
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump(config_data, f)

        cfg = load_config(config_file)
        assert cfg.raster.scale == 3.0
        assert cfg.raster.contrast == 1.4
        assert cfg.extraction.year_max == 2035
        assert cfg.log_level == "DEBUG"

    def test_load_empty_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        assert isinstance(load_config(config_file), AppConfig)
