"""Ordered strategy chains for single-field extraction.

Each strategy looks for one field in a page's regions and returns a
candidate or ``None``. A chain evaluates its strategies in a fixed order
and stops at the first candidate that passes validation. Later
strategies never override or merge with an earlier success.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from transit_ocr.ocr.region_segmenter import TextRegions
from transit_ocr.utils.logger import get_logger

logger = get_logger(__name__)


class ExtractionStrategy(Protocol):
    """One way of finding a field in segmented page text."""

    name: str

    def try_extract(self, regions: TextRegions) -> str | None: ...


@dataclass
class ChainOutcome:
    """Winning value of a chain and the strategy that produced it."""

    value: str | None
    strategy: str | None = None


class StrategyChain:
    """Runs strategies in priority order until one yields a valid value.

    Args:
        field_name: Field label used in log messages.
        strategies: Strategies in priority order.
        validate: Final acceptance check applied to every candidate.
    """

    def __init__(
        self,
        field_name: str,
        strategies: Sequence[ExtractionStrategy],
        validate: Callable[[str | None], bool],
    ) -> None:
        self.field_name = field_name
        self.strategies = list(strategies)
        self.validate = validate

    def run(self, regions: TextRegions) -> ChainOutcome:
        """Evaluate the chain against one page.

        Args:
            regions: Segmented page text.

        Returns:
            The first validated value, or an outcome with ``value=None``.
        """
        for strategy in self.strategies:
            candidate = strategy.try_extract(regions)
            if candidate is None:
                continue
            if not self.validate(candidate):
                logger.debug(
                    "%s candidate %r from %s failed validation",
                    self.field_name,
                    candidate,
                    strategy.name,
                )
                continue
            logger.debug("%s found by %s: %s", self.field_name, strategy.name, candidate)
            return ChainOutcome(candidate, strategy.name)

        logger.debug("%s not found by any of %d strategies", self.field_name, len(self.strategies))
        return ChainOutcome(None)
