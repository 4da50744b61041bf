"""Heading-anchored segmentation of recognized page text.

Splits a page's text into the labeled boxes of a permit card (identifier
code, plate, vehicle data table) by scanning for their printed headings.
Regions are bounded windows: one closes at the next heading or after a
fixed number of lines, whichever comes first.
"""

import re
from dataclasses import dataclass, field

from transit_ocr.utils.logger import get_logger

logger = get_logger(__name__)

IDENTIFIER = "identifier"
PLATE = "plate"
VEHICLE_DATA = "vehicle_data"
FULL_TEXT = "full_text"

# Checked in order; the first matching anchor names the region.
HEADING_ANCHORS: list[tuple[str, re.Pattern[str]]] = [
    (
        IDENTIFIER,
        re.compile(
            r"[CB][OÓ0]D?[IÍ1l]G[O0]\s*[UÚ]N[IÍ1l]C[O0]\s*IDENTIF", re.IGNORECASE
        ),
    ),
    # Standalone heading only; "PLACA RODAJE | MARCA | ..." is a table column row.
    (PLATE, re.compile(r"^\W*PLACA\s+(?:DE\s+)?RODAJE\W*$", re.IGNORECASE)),
    (VEHICLE_DATA, re.compile(r"DATOS\s+DEL\s+VEH[IÍ1]CULO", re.IGNORECASE)),
]


@dataclass
class TextRegion:
    """Contiguous lines captured under one heading, heading line included."""

    name: str
    start_line: int
    lines: list[str] = field(default_factory=list)
    closed_by: str = "end"

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass
class TextRegions:
    """Named regions of one page plus the full page text."""

    full_text: str
    regions: dict[str, TextRegion] = field(default_factory=dict)
    discarded_line_count: int = 0

    def __contains__(self, name: str) -> bool:
        return name == FULL_TEXT or name in self.regions

    def get(self, name: str) -> TextRegion | None:
        return self.regions.get(name)

    def text(self, name: str) -> str | None:
        """Return a region's text, the page text for ``FULL_TEXT``, or ``None``."""
        if name == FULL_TEXT:
            return self.full_text
        region = self.regions.get(name)
        return region.text if region else None

    @property
    def ordered(self) -> list[TextRegion]:
        """Named regions sorted by their position on the page."""
        return sorted(self.regions.values(), key=lambda r: r.start_line)


def match_heading(line: str) -> str | None:
    """Return the region name whose heading anchor matches ``line``."""
    for name, pattern in HEADING_ANCHORS:
        if pattern.search(line):
            return name
    return None


class RegionSegmenter:
    """Splits cleaned page text into heading-anchored regions.

    Args:
        max_region_lines: A region holding more lines than this, heading
            included, is force-closed.
    """

    def __init__(self, max_region_lines: int = 10) -> None:
        self.max_region_lines = max_region_lines

    def segment(self, text: str) -> TextRegions:
        """Segment a page's text.

        Lines before the first heading, and lines after a force-closed
        region until the next heading, belong to no named region. They
        stay reachable through ``FULL_TEXT``. When a heading repeats, the
        first occurrence is kept.

        Args:
            text: Cleaned recognized text for one page.

        Returns:
            Segmented regions.
        """
        result = TextRegions(full_text=text)
        current: TextRegion | None = None

        for index, raw_line in enumerate(text.split("\n")):
            line = raw_line.strip()
            heading = match_heading(line)

            if heading is not None:
                self._close(result, current, "anchor")
                current = TextRegion(name=heading, start_line=index, lines=[line])
                continue

            if current is None:
                result.discarded_line_count += 1
                continue

            current.lines.append(line)
            if len(current.lines) > self.max_region_lines:
                self._close(result, current, "line_cap")
                current = None

        self._close(result, current, "end")

        logger.debug(
            "Segmented page into %s (%d unassigned lines)",
            [r.name for r in result.ordered] or "no regions",
            result.discarded_line_count,
        )
        return result

    @staticmethod
    def _close(result: TextRegions, region: TextRegion | None, reason: str) -> None:
        if region is None:
            return
        region.closed_by = reason
        if region.name in result.regions:
            logger.debug("Duplicate %s heading at line %d ignored", region.name, region.start_line)
            result.discarded_line_count += len(region.lines)
            return
        result.regions[region.name] = region
