"""Configuration management for the permit card pipeline.

Loads and validates YAML configuration with sensible defaults for
rasterization, OCR, region segmentation, field extraction and splitting.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_PLATE_BLACKLIST: list[str] = [
    "MARCA",
    "MODELO",
    "URBANO",
    "COUNTY",
    "HYUNDAI",
    "YOUYI",
    "FABRICACION",
    "CATEGORIA",
    "RESOLUCION",
    "FECHA",
    "RAZON",
    "SOCIAL",
    "EMPRESA",
    "TRANSPORTES",
    "NEGOCIO",
    "RADIO",
    "ACCION",
    "CAYMA",
    "ZAMACOLA",
]

DEFAULT_CODE_EXCLUSION_KEYWORDS: list[str] = [
    "PLACA",
    "DATOS",
    "RAZÓN",
    "EMPRESA",
    "UNIDAD",
    "MUNICIPALIDAD",
    "GERENCIA",
]


class CropConfig(BaseModel):
    """Normalized page rectangle (fractions of width and height)."""

    x: float = Field(default=0.0, ge=0.0, le=1.0)
    y: float = Field(default=0.70, ge=0.0, le=1.0)
    width: float = Field(default=0.35, gt=0.0, le=1.0)
    height: float = Field(default=0.30, gt=0.0, le=1.0)


class RasterConfig(BaseModel):
    """Configuration for page rasterization."""

    scale: float = Field(default=4.0, gt=0.0)
    crop_scale: float = Field(default=4.0, gt=0.0)
    contrast: float = Field(default=1.4, ge=1.0, le=2.0)
    grayscale: bool = False


class OCRConfig(BaseModel):
    """Configuration for the Tesseract OCR engine."""

    tesseract_cmd: str | None = None
    lang: str = "spa"
    preserve_interword_spaces: bool = True


class SegmentationConfig(BaseModel):
    """Configuration for heading-anchored region segmentation."""

    max_region_lines: int = Field(default=10, ge=1)


class ExtractionConfig(BaseModel):
    """Configuration for identifier code and plate extraction."""

    year_min: int = 2000
    year_max: int = 2030
    heading_window: int = Field(default=8, ge=1)
    plate_blacklist: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PLATE_BLACKLIST)
    )
    code_exclusion_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CODE_EXCLUSION_KEYWORDS)
    )
    code_crop: CropConfig = Field(default_factory=CropConfig)


class SplitConfig(BaseModel):
    """Configuration for per-page document splitting."""

    fallback_prefix: str = "PAGE_"
    overwrite_existing: bool = True


class AppConfig(BaseModel):
    """Top-level application configuration."""

    raster: RasterConfig = Field(default_factory=RasterConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    segmentation: SegmentationConfig = Field(default_factory=SegmentationConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    split: SplitConfig = Field(default_factory=SplitConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
