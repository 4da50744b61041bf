"""Validation bar for recovered permit card fields.

An identifier code is exactly four digits and not a plausible calendar
year. A vehicle plate is 5-8 alphanumeric characters with at least one
letter and one digit, matches one of the known plate shapes and contains
no blacklisted word. Extractors only ever return values that pass here.
"""

import re
from dataclasses import dataclass

from transit_ocr.utils.config import ExtractionConfig
from transit_ocr.utils.logger import get_logger

logger = get_logger(__name__)

CODE_PATTERN = re.compile(r"^\d{4}$")

# In priority order: letters + digits, letter-digit-letter-digits, generic token.
PLATE_SHAPES: list[re.Pattern[str]] = [
    re.compile(r"[A-Z]{2,3}\d{3,4}"),
    re.compile(r"[A-Z]\d[A-Z]\d{3,4}"),
    re.compile(r"[A-Z0-9]{5,7}"),
]

PLATE_MIN_LENGTH = 5
PLATE_MAX_LENGTH = 8


def is_plausible_year(token: str, year_min: int = 2000, year_max: int = 2030) -> bool:
    """Return True when a 4-digit token reads as a calendar year in range."""
    return bool(CODE_PATTERN.match(token)) and year_min <= int(token) <= year_max


def normalize_plate(token: str) -> str:
    """Uppercase a plate candidate and strip hyphens."""
    return token.strip().upper().replace("-", "")


@dataclass
class FieldValidator:
    """Validates identifier code and plate candidates.

    Args:
        year_min: Lowest year excluded from identifier codes.
        year_max: Highest year excluded from identifier codes.
        plate_blacklist: Words that disqualify a plate candidate when
            they appear anywhere inside it.
    """

    year_min: int = 2000
    year_max: int = 2030
    plate_blacklist: tuple[str, ...] = ()

    @classmethod
    def from_config(cls, config: ExtractionConfig) -> "FieldValidator":
        return cls(
            year_min=config.year_min,
            year_max=config.year_max,
            plate_blacklist=tuple(word.upper() for word in config.plate_blacklist),
        )

    def is_year(self, token: str) -> bool:
        return is_plausible_year(token, self.year_min, self.year_max)

    def is_valid_code(self, value: str | None) -> bool:
        """Check an identifier code candidate."""
        if value is None or not CODE_PATTERN.match(value):
            return False
        return not self.is_year(value)

    def is_valid_plate(self, value: str | None) -> bool:
        """Check an already-normalized plate candidate."""
        if value is None:
            return False
        if not PLATE_MIN_LENGTH <= len(value) <= PLATE_MAX_LENGTH:
            return False
        if not re.search(r"[A-Z]", value) or not re.search(r"\d", value):
            return False
        if not any(shape.fullmatch(value) for shape in PLATE_SHAPES):
            return False
        if any(word in value for word in self.plate_blacklist):
            logger.debug("Plate candidate %s rejected by blacklist", value)
            return False
        return True
