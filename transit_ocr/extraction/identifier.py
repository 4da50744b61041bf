"""Identifier code extraction.

The identifier is a 4-digit number printed in the "CÓDIGO ÚNICO
IDENTIFICADOR" box, often as a large stamp in the lower-left corner.
Strategies, in priority order:

1. a standalone 4-digit line inside the identifier region;
2. 4 digits right after the "IDENTIFICADOR" heading inside the region;
3. 4 digits within a few lines of a heading-like string anywhere on the page;
4. any line that is only 4 digits;
5. any isolated 4-digit token on a line free of unrelated keywords;
6. a second, digits-only recognition pass over the lower-left crop.

Years in the configured range are never accepted.
"""

import re
from collections.abc import Awaitable, Callable

from transit_ocr.ocr.rasterizer import CropRect
from transit_ocr.ocr.region_segmenter import IDENTIFIER, TextRegions
from transit_ocr.utils.config import ExtractionConfig
from transit_ocr.utils.logger import get_logger

from .chain import ChainOutcome, StrategyChain
from .validators import FieldValidator

logger = get_logger(__name__)

FIELD_NAME = "identifier_code"

_STANDALONE_CODE = re.compile(r"^(\d{4})$")
_ISOLATED_CODE = re.compile(r"(?<!\d)(\d{4})(?!\d)")
_DIGIT_RUN = re.compile(r"\d{4,}")
_HEADING_ADJACENT = re.compile(r"IDENTIFICADOR\s*(\d{4})(?!\d)", re.IGNORECASE)

# Heading spellings seen in OCR output: "CODIGO UNICO", "boIGo Unico", "IDENTIFICADOR".
_HEADING_LIKE: list[re.Pattern[str]] = [
    re.compile(r"C[OÓ0][DÓ0][IÍ1][G][O0]\s*[UÚ][NÑ][IÍ1][C][O0]", re.IGNORECASE),
    re.compile(r"B[O0][IÍ1]G[O0]\s*[UÚ][NÑ][IÍ1]C[O0]", re.IGNORECASE),
    re.compile(r"IDENTIFICADOR", re.IGNORECASE),
]

# Lines mentioning a resolution ("RG 734-2025") or a date are not code lines.
_REFERENCE_MARKERS = ("RG", "/")


def _lines(text: str) -> list[str]:
    return [line.strip() for line in text.split("\n")]


class RegionStandaloneLineStrategy:
    """A line of exactly four digits inside the identifier region."""

    name = "region_standalone_line"

    def __init__(self, validator: FieldValidator) -> None:
        self.validator = validator

    def try_extract(self, regions: TextRegions) -> str | None:
        region = regions.get(IDENTIFIER)
        if region is None:
            return None
        for line in region.lines:
            match = _STANDALONE_CODE.match(line.strip())
            if match and self.validator.is_valid_code(match.group(1)):
                return match.group(1)
        return None


class RegionHeadingAdjacentStrategy:
    """Four digits directly following the heading inside the identifier region."""

    name = "region_heading_adjacent"

    def __init__(self, validator: FieldValidator) -> None:
        self.validator = validator

    def try_extract(self, regions: TextRegions) -> str | None:
        region_text = regions.text(IDENTIFIER)
        if not region_text:
            return None
        for match in _HEADING_ADJACENT.finditer(region_text):
            if self.validator.is_valid_code(match.group(1)):
                return match.group(1)
        return None


class HeadingProximityStrategy:
    """Four digits within a window of lines after a heading-like string."""

    name = "heading_proximity"

    def __init__(self, validator: FieldValidator, window: int = 8) -> None:
        self.validator = validator
        self.window = window

    def try_extract(self, regions: TextRegions) -> str | None:
        lines = _lines(regions.full_text)
        for i, line in enumerate(lines):
            if not any(pattern.search(line) for pattern in _HEADING_LIKE):
                continue
            for following in lines[i + 1 : i + 1 + self.window]:
                for match in _ISOLATED_CODE.finditer(following):
                    if self.validator.is_valid_code(match.group(1)):
                        return match.group(1)
        return None


class StandaloneLineStrategy:
    """Any line on the page that is only four digits."""

    name = "standalone_line"

    def __init__(self, validator: FieldValidator) -> None:
        self.validator = validator

    def try_extract(self, regions: TextRegions) -> str | None:
        for line in _lines(regions.full_text):
            match = _STANDALONE_CODE.match(line)
            if match and self.validator.is_valid_code(match.group(1)):
                return match.group(1)
        return None


class IsolatedTokenStrategy:
    """Isolated 4-digit tokens on lines without unrelated keywords.

    Tokens that make up all the digits of their line rank ahead of tokens
    embedded in longer text; ties keep page order.
    """

    name = "isolated_token"

    def __init__(self, validator: FieldValidator, exclusion_keywords: list[str]) -> None:
        self.validator = validator
        self.exclusion_keywords = [word.upper() for word in exclusion_keywords]

    def try_extract(self, regions: TextRegions) -> str | None:
        candidates: list[tuple[int, int, str]] = []
        for index, line in enumerate(_lines(regions.full_text)):
            upper = line.upper()
            if any(word in upper for word in self.exclusion_keywords):
                continue
            if any(marker in line for marker in _REFERENCE_MARKERS):
                continue
            digits_only = re.sub(r"\D", "", line)
            for match in _ISOLATED_CODE.finditer(line):
                code = match.group(1)
                if not self.validator.is_valid_code(code):
                    continue
                priority = 0 if digits_only == code else 1
                candidates.append((priority, index, code))

        if not candidates:
            return None
        candidates.sort()
        return candidates[0][2]


class DigitsOnlyCodeStrategy:
    """First non-year 4-digit chunk in digits-only OCR output.

    Cleanup joins digit groups separated by spaces, so a stamp read as
    ``2025 4821`` arrives as ``20254821``. Each digit run is walked in
    consecutive 4-digit chunks from its start.
    """

    name = "crop_digits_only"

    def __init__(self, validator: FieldValidator) -> None:
        self.validator = validator

    def try_extract(self, regions: TextRegions) -> str | None:
        for run in _DIGIT_RUN.findall(regions.full_text):
            for start in range(0, len(run) - 3, 4):
                chunk = run[start : start + 4]
                if self.validator.is_valid_code(chunk):
                    return chunk
        return None


CropReader = Callable[[CropRect], Awaitable[str | None]]


class IdentifierCodeExtractor:
    """Recovers the identifier code of one permit card page.

    Args:
        config: Extraction settings (year range, keywords, crop area).
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        config = config or ExtractionConfig()
        self.validator = FieldValidator.from_config(config)
        self.crop_rect = CropRect(
            x=config.code_crop.x,
            y=config.code_crop.y,
            width=config.code_crop.width,
            height=config.code_crop.height,
        )
        self.text_chain = StrategyChain(
            FIELD_NAME,
            [
                RegionStandaloneLineStrategy(self.validator),
                RegionHeadingAdjacentStrategy(self.validator),
                HeadingProximityStrategy(self.validator, config.heading_window),
                StandaloneLineStrategy(self.validator),
                IsolatedTokenStrategy(self.validator, config.code_exclusion_keywords),
            ],
            self.validator.is_valid_code,
        )
        self.crop_chain = StrategyChain(
            FIELD_NAME,
            [DigitsOnlyCodeStrategy(self.validator)],
            self.validator.is_valid_code,
        )

    def extract_from_text(self, regions: TextRegions) -> ChainOutcome:
        """Run the text-only strategies."""
        return self.text_chain.run(regions)

    async def extract(
        self, regions: TextRegions, read_crop: CropReader | None = None
    ) -> ChainOutcome:
        """Run every strategy, including the cropped re-recognition pass.

        Args:
            regions: Segmented page text.
            read_crop: Coroutine function that renders and recognizes a
                page rectangle with digits-only OCR and returns its text,
                or ``None`` when nothing was recognized. When omitted the
                crop pass is skipped.

        Returns:
            The winning code and strategy, or ``value=None``.
        """
        outcome = self.extract_from_text(regions)
        if outcome.value is not None or read_crop is None:
            return outcome

        logger.debug("No identifier code in page text, trying lower-left crop")
        crop_text = await read_crop(self.crop_rect)
        if not crop_text:
            return ChainOutcome(None)
        return self.crop_chain.run(TextRegions(full_text=crop_text))
