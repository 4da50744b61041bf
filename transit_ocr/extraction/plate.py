"""Vehicle plate extraction.

Plates are only read from the card's own boxes: the vehicle data table
and the "PLACA RODAJE" box. There is deliberately no full-page fallback,
since free text on the card (brands, districts, company names) yields
plate-shaped false positives. A page without those boxes has no plate.
"""

import re

from transit_ocr.ocr.region_segmenter import PLATE, VEHICLE_DATA, TextRegions
from transit_ocr.utils.config import ExtractionConfig
from transit_ocr.utils.logger import get_logger

from .chain import ChainOutcome, StrategyChain
from .validators import PLATE_SHAPES, FieldValidator, normalize_plate

logger = get_logger(__name__)

FIELD_NAME = "vehicle_plate"

_PLATE_COLUMN = re.compile(r"PLACA\s+(?:DE\s+)?RODAJE", re.IGNORECASE)
# OCR reads the table's vertical rules as "|" or a lone "I".
_CELL_SEPARATOR = re.compile(r"[\s|]+")
_WORD_BOUNDED_SHAPES = [re.compile(rf"\b({shape.pattern})\b") for shape in PLATE_SHAPES]


def find_plate_in_line(line: str, validator: FieldValidator) -> str | None:
    """Return the first valid plate in a line, trying shapes in priority order."""
    normalized = normalize_plate(line)
    for pattern in _WORD_BOUNDED_SHAPES:
        for match in pattern.finditer(normalized):
            if validator.is_valid_plate(match.group(1)):
                return match.group(1)
    return None


class VehicleTableColumnStrategy:
    """First cell of the row under the "PLACA RODAJE" column header."""

    name = "vehicle_table_column"

    def __init__(self, validator: FieldValidator) -> None:
        self.validator = validator

    def try_extract(self, regions: TextRegions) -> str | None:
        region = regions.get(VEHICLE_DATA)
        if region is None:
            return None
        lines = region.lines
        for i, line in enumerate(lines[:-1]):
            if not _PLATE_COLUMN.search(line):
                continue
            cells = [
                cell
                for cell in _CELL_SEPARATOR.split(lines[i + 1].strip())
                if cell and cell != "I"
            ]
            if not cells:
                continue
            candidate = normalize_plate(cells[0])
            if self.validator.is_valid_plate(candidate):
                return candidate
        return None


class VehicleRegionShapeStrategy:
    """Plate-shaped token on any line of the vehicle data region."""

    name = "vehicle_region_shape"

    def __init__(self, validator: FieldValidator) -> None:
        self.validator = validator

    def try_extract(self, regions: TextRegions) -> str | None:
        region = regions.get(VEHICLE_DATA)
        if region is None:
            return None
        for line in region.lines:
            plate = find_plate_in_line(line, self.validator)
            if plate:
                return plate
        return None


class PlateRegionShapeStrategy:
    """Plate-shaped token inside the "PLACA RODAJE" box."""

    name = "plate_region_shape"

    def __init__(self, validator: FieldValidator) -> None:
        self.validator = validator

    def try_extract(self, regions: TextRegions) -> str | None:
        region = regions.get(PLATE)
        if region is None:
            return None
        for line in region.lines:
            if _PLATE_COLUMN.search(line):
                continue
            plate = find_plate_in_line(line, self.validator)
            if plate:
                return plate
        return None


class VehiclePlateExtractor:
    """Recovers the vehicle plate of one permit card page.

    Args:
        config: Extraction settings (plate blacklist).
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self.validator = FieldValidator.from_config(config or ExtractionConfig())
        self.chain = StrategyChain(
            FIELD_NAME,
            [
                VehicleTableColumnStrategy(self.validator),
                VehicleRegionShapeStrategy(self.validator),
                PlateRegionShapeStrategy(self.validator),
            ],
            self.validator.is_valid_plate,
        )

    def extract(self, regions: TextRegions) -> ChainOutcome:
        """Run the plate strategies against one page."""
        return self.chain.run(regions)
