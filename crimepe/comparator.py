"""Side-by-side comparison of two scenarios.

Each comparison is stamped with a generation number. A response that
arrives after a newer comparison was started is discarded, so a slow stale
response can never overwrite a newer result.
"""

import logging

from crimepe.errors import ProviderError, ValidationError
from crimepe.models import ComparisonResult, Scenario, ShareField
from crimepe.provider import DataProvider
from crimepe.stats import two_way_share

__all__ = ["ScenarioComparator", "share", "two_way_share", "validate_scenario"]

logger = logging.getLogger(__name__)


def validate_scenario(scenario: Scenario, label: str) -> None:
    """Reject a scenario without a municipality.

    Raises:
        ValidationError: If the municipality is empty or blank
    """
    if not scenario.municipality or not scenario.municipality.strip():
        raise ValidationError(f"Scenario {label}: select a municipality")


def share(result: ComparisonResult, field: ShareField) -> tuple[float, float]:
    """Two-way percentage split of a paired field of a comparison."""
    value_a, value_b = result.paired_values(field)
    return two_way_share(value_a, value_b)


class ScenarioComparator:
    """Resolves scenario pairs through a provider and holds the last good result."""

    def __init__(self, provider: DataProvider) -> None:
        self.provider = provider
        self.result: ComparisonResult | None = None
        self._generation = 0

    @property
    def generation(self) -> int:
        """Generation of the most recently started comparison."""
        return self._generation

    async def compare(self, a: Scenario, b: Scenario) -> ComparisonResult | None:
        """Compare two scenarios.

        Args:
            a: Left-hand scenario
            b: Right-hand scenario

        Returns:
            The new result, or None if a newer comparison started while this
            one was in flight (the response is discarded)

        Raises:
            ValidationError: If either scenario has no municipality; no request
                is made and any comparison still in flight is discarded
            ProviderError: If the request fails or the response can't be
                parsed; ``result`` keeps its previous value
        """
        # Any new attempt, even one rejected locally, supersedes requests in flight
        self._generation += 1
        generation = self._generation
        validate_scenario(a, "A")
        validate_scenario(b, "B")

        logger.info(
            f"Comparing {a.municipality} {a.month}/{a.year} with "
            f"{b.municipality} {b.month}/{b.year} (generation {generation})"
        )

        try:
            result = await self.provider.fetch_comparison(a, b)
        except ProviderError:
            if self._is_stale(generation):
                return None
            raise

        if self._is_stale(generation):
            return None

        self.result = result
        return result

    def _is_stale(self, generation: int) -> bool:
        if generation == self._generation:
            return False
        logger.debug(
            f"Discarding comparison generation {generation}, latest is {self._generation}"
        )
        return True
