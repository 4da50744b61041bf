"""Rule-based parsing of case-file resolution text.

Extracts the case number, year, resolution number, date, technical
report number, company name and business unit from the first page of a
"resolución gerencial". When a pattern matches more than once the first
match wins.
"""

import re
from dataclasses import asdict, dataclass
from datetime import date

from transit_ocr.utils.logger import get_logger

logger = get_logger(__name__)

# "No." is the marker produced by text cleanup; raw "N°"/"Nº" are accepted too.
_NO = r"N(?:o\.|[°º])"

_CASE_NUMBER_PATTERNS: list[re.Pattern[str]] = [
    re.compile(rf"expediente\s+{_NO}\s*(\d+)-\d{{4}}", re.IGNORECASE),
    re.compile(rf"expediente\s+{_NO}\s*(\d+)", re.IGNORECASE),
    re.compile(rf"exp[.\s]+{_NO}\s*(\d+)", re.IGNORECASE),
]

_YEAR_PATTERNS: list[re.Pattern[str]] = [
    re.compile(rf"expediente\s+{_NO}\s*\d+-(202\d)", re.IGNORECASE),
    re.compile(r"del\s+(202\d)", re.IGNORECASE),
    re.compile(r"año\s+(202\d)", re.IGNORECASE),
    re.compile(r"(202\d)"),
]

_RESOLUTION_PATTERNS: list[re.Pattern[str]] = [
    re.compile(rf"RESOLUCI[ÓO]N\s+GERENCIAL\s+{_NO}\s*—?\s*(\d+)", re.IGNORECASE),
    re.compile(rf"RESOLUCI[ÓO]N\s+{_NO}\s*—?\s*(\d+)", re.IGNORECASE),
    re.compile(rf"R\.G\.\s+{_NO}\s*(\d+)", re.IGNORECASE),
]
_RESOLUTION_LINE = re.compile(r"RESOLUCI[ÓO]N\s+GERENCIAL", re.IGNORECASE)

_LONG_DATE = re.compile(r"(\d{1,2})\s+de\s+(\w+)\s+del?\s+(202\d)", re.IGNORECASE)

_REPORT_PATTERNS: list[re.Pattern[str]] = [
    re.compile(rf"Informe\s+T[eé]cnico\s+{_NO}\s*([\d\-A-Za-z/]+)", re.IGNORECASE),
    re.compile(rf"I\.T\.\s+{_NO}\s*([\d\-A-Z/]+)", re.IGNORECASE),
]

_COMPANY_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"Empresa\s+de\s+([A-ZÁÉÍÓÚÑ\s]+S\.A\.C\.)", re.IGNORECASE),
    re.compile(r"Empresa\s+([A-ZÁÉÍÓÚÑ\s]+S\.R\.L\.)", re.IGNORECASE),
    re.compile(r"Empresa\s+([A-ZÁÉÍÓÚÑ\s]+E\.I\.R\.L\.)", re.IGNORECASE),
    re.compile(
        r"representante\s+legal\s+de\s+la\s+Empresa\s+de\s+([A-ZÁÉÍÓÚÑ\s.]+?)(?:,|de\s+la)",
        re.IGNORECASE,
    ),
]

_BUSINESS_UNIT_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"unidad\s+de\s+negocio\s+C-?(\d+)", re.IGNORECASE),
    re.compile(r"C-(\d+)"),
    re.compile(r"(?:^|\s)C(\d+)(?:\s|$)", re.MULTILINE),
]

SPANISH_MONTHS: dict[str, int] = {
    "enero": 1,
    "febrero": 2,
    "marzo": 3,
    "abril": 4,
    "mayo": 5,
    "junio": 6,
    "julio": 7,
    "agosto": 8,
    "septiembre": 9,
    "setiembre": 9,
    "octubre": 10,
    "noviembre": 11,
    "diciembre": 12,
}


@dataclass
class CaseFileFields:
    """Fields parsed from a case-file resolution. Missing fields are ``None``."""

    case_number: str | None = None
    case_year: str | None = None
    resolution_number: str | None = None
    date: str | None = None
    technical_report: str | None = None
    company_name: str | None = None
    business_unit: str | None = None
    file_number: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return asdict(self)


def _first_group(patterns: list[re.Pattern[str]], text: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


class CaseFileParser:
    """Parses case-file resolution text into :class:`CaseFileFields`."""

    def parse(self, text: str) -> CaseFileFields | None:
        """Parse cleaned OCR text.

        Args:
            text: Recognized text of the resolution's first page.

        Returns:
            Parsed fields, or ``None`` for empty text.
        """
        if not text or not text.strip():
            logger.warning("Empty text passed to case-file parser")
            return None

        business_unit = self.extract_business_unit(text)
        fields = CaseFileFields(
            case_number=_first_group(_CASE_NUMBER_PATTERNS, text),
            case_year=self.extract_year(text),
            resolution_number=self.extract_resolution_number(text),
            date=self.extract_date(text),
            technical_report=_first_group(_REPORT_PATTERNS, text),
            company_name=self.extract_company_name(text),
            business_unit=business_unit,
            file_number=business_unit,
        )

        found = sum(1 for value in fields.to_dict().values() if value)
        logger.info("Case-file parser found %d of %d fields", found, len(fields.to_dict()))
        return fields

    def extract_year(self, text: str) -> str:
        """Case year, defaulting to the current year."""
        year = _first_group(_YEAR_PATTERNS, text)
        if year is None:
            year = str(date.today().year)
            logger.debug("No case year found, using %s", year)
        return year

    def extract_resolution_number(self, text: str) -> str | None:
        """Resolution number, falling back to the digits of the heading line."""
        number = _first_group(_RESOLUTION_PATTERNS, text)
        if number is not None:
            return number

        for line in text.split("\n"):
            if _RESOLUTION_LINE.search(line):
                digits = re.sub(r"\D", "", line)
                if len(digits) >= 3:
                    return digits[:4]
        return None

    def extract_date(self, text: str) -> str | None:
        """Resolution date as ``YYYY-MM-DD``.

        The first long-form Spanish date with a known month and a real
        calendar day wins.
        """
        for match in _LONG_DATE.finditer(text):
            month = SPANISH_MONTHS.get(match.group(2).lower())
            if month is None:
                continue
            try:
                return date(int(match.group(3)), month, int(match.group(1))).isoformat()
            except ValueError:
                logger.debug("Discarding impossible date %r", match.group(0))
        return None

    def extract_company_name(self, text: str) -> str | None:
        name = _first_group(_COMPANY_PATTERNS, text)
        return name.strip() if name else None

    def extract_business_unit(self, text: str) -> str | None:
        """Business unit code without hyphen, e.g. ``"C-7"`` to ``"C7"``."""
        number = _first_group(_BUSINESS_UNIT_PATTERNS, text)
        return f"C{number}" if number else None
