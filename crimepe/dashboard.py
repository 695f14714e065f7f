"""Dashboard orchestration: period loading, selection, derived statistics, comparison.

The Dashboard owns all mutable application state. Provider calls are awaited
on a single event loop; each period load and each comparison is stamped with
a generation number and responses from superseded requests are dropped.

Failures are caught here and turned into state (``period_error``,
``comparison_error``) for the view to display. Nothing raised by the provider
propagates to the rendering layer.

Usage:
    provider = HttpDataProvider(config.provider)
    dashboard = Dashboard(provider, surface, config.dashboard)
    await dashboard.load_period()
    dashboard.select("RECIFE")
    dashboard.selected_stats  # ranks, rates, population
"""

import logging
from typing import Literal

from pydantic import BaseModel, Field

from crimepe.comparator import ScenarioComparator
from crimepe.config import DashboardConfig
from crimepe.errors import ProviderError, ValidationError
from crimepe.models import (
    ComparisonResult,
    DatasetSnapshot,
    MunicipalityRecord,
    MunicipalityStats,
    Period,
    Scenario,
    StateTotals,
)
from crimepe.provider import DataProvider
from crimepe.selection import RenderingSurface, SelectionController, StyleDescriptor
from crimepe.stats import aggregate_totals, municipality_stats

logger = logging.getLogger(__name__)

PERIOD_ERROR_MESSAGE = "Erro ao carregar dados do servidor."
COMPARISON_ERROR_MESSAGE = "Erro ao comparar. Verifique se o backend está rodando."


class DatasetStore:
    """Holds the snapshot currently in effect.

    A new snapshot replaces the old one in a single assignment, so readers
    never see a partially updated dataset.
    """

    def __init__(self) -> None:
        self._snapshot: DatasetSnapshot | None = None

    @property
    def snapshot(self) -> DatasetSnapshot | None:
        return self._snapshot

    @property
    def records(self) -> tuple[MunicipalityRecord, ...]:
        return self._snapshot.records if self._snapshot else ()

    def replace(self, snapshot: DatasetSnapshot) -> None:
        self._snapshot = snapshot


class DashboardState(BaseModel):
    """Mutable view state, changed only through Dashboard methods."""

    period: Period
    loading: bool = False
    period_error: str | None = None
    scenario_a: Scenario = Field(
        default_factory=lambda: Scenario(municipality="RECIFE", year=2024, month=0)
    )
    scenario_b: Scenario = Field(
        default_factory=lambda: Scenario(municipality="CARUARU", year=2024, month=0)
    )
    comparison: ComparisonResult | None = None
    comparison_error: str | None = None
    comparing: bool = False


class Dashboard:
    """Top-level controller for the statistics dashboard."""

    def __init__(
        self,
        provider: DataProvider,
        surface: RenderingSurface,
        config: DashboardConfig | None = None,
    ) -> None:
        self.config = config or DashboardConfig()
        self.provider = provider
        self.store = DatasetStore()
        self.selection = SelectionController(surface)
        self.comparator = ScenarioComparator(provider)
        self.state = DashboardState(
            period=Period(year=self.config.default_year, month=self.config.default_month)
        )
        self._period_generation = 0

    # Period loading

    async def set_period(self, year: int | None = None, month: int | None = None) -> bool:
        """Change the active year and/or month and load its dataset.

        Returns:
            True if the resulting snapshot was applied
        """
        self.state.period = Period(
            year=self.state.period.year if year is None else year,
            month=self.state.period.month if month is None else month,
        )
        return await self.load_period()

    async def load_period(self) -> bool:
        """Fetch the dataset for the current period.

        Returns:
            True if the snapshot was applied, False if the fetch failed or a
            newer load superseded it
        """
        self._period_generation += 1
        generation = self._period_generation
        period = self.state.period
        self.state.loading = True
        self.state.period_error = None

        try:
            snapshot = await self.provider.fetch_period(period)
        except ProviderError as e:
            if generation != self._period_generation:
                logger.debug(f"Ignoring failure of superseded load for {period.label}: {e}")
                return False
            logger.error(f"Failed to load period {period.year}/{period.month}: {e}")
            self.state.period_error = PERIOD_ERROR_MESSAGE
            self.state.loading = False
            return False

        if generation != self._period_generation:
            logger.debug(
                f"Discarding period {period.year}/{period.month} "
                f"(generation {generation}, latest {self._period_generation})"
            )
            return False

        self.store.replace(snapshot)
        self.state.loading = False
        logger.info(
            f"Applied snapshot {period.year}/{period.month} "
            f"with {len(snapshot.records)} municipalities"
        )
        self.selection.refresh(snapshot)
        return True

    # Selection

    @property
    def selected(self) -> str | None:
        return self.selection.selected

    def select(self, name: str | None) -> None:
        """Select a municipality; an empty name returns to the whole-state view."""
        if name:
            self.selection.select(name)
        else:
            self.selection.deselect()

    def deselect(self) -> None:
        self.selection.deselect()

    def on_feature_activated(self, name: str) -> None:
        """Click handler for the rendering surface."""
        self.selection.on_feature_activated(name)

    def style_for(self, record: MunicipalityRecord) -> StyleDescriptor:
        """Style function for the rendering surface."""
        return self.selection.style_for(record)

    # Derived statistics

    @property
    def totals(self) -> StateTotals:
        return aggregate_totals(self.store.records)

    @property
    def municipality_names(self) -> list[str]:
        snapshot = self.store.snapshot
        return snapshot.municipality_names() if snapshot else []

    @property
    def selected_record(self) -> MunicipalityRecord | None:
        snapshot = self.store.snapshot
        return snapshot.find(self.selected) if snapshot else None

    @property
    def selected_stats(self) -> MunicipalityStats | None:
        return municipality_stats(self.store.records, self.selected)

    # Comparison

    def set_scenario(
        self,
        side: Literal["a", "b"],
        municipality: str | None = None,
        year: int | None = None,
        month: int | None = None,
    ) -> Scenario:
        """Update one side of the comparison form."""
        current = self.state.scenario_a if side == "a" else self.state.scenario_b
        updated = Scenario(
            municipality=current.municipality if municipality is None else municipality,
            year=current.year if year is None else year,
            month=current.month if month is None else month,
        )
        if side == "a":
            self.state.scenario_a = updated
        else:
            self.state.scenario_b = updated
        return updated

    async def compare(self) -> ComparisonResult | None:
        """Run the comparison for the current scenarios.

        Returns:
            The applied result, or None on validation/provider failure or when
            the response was superseded
        """
        a, b = self.state.scenario_a, self.state.scenario_b
        self.state.comparison_error = None
        self.state.comparing = True

        try:
            result = await self.comparator.compare(a, b)
        except ValidationError as e:
            logger.warning(f"Comparison not attempted: {e}")
            self.state.comparison = None
            self.state.comparison_error = str(e)
            self.state.comparing = False
            return None
        except ProviderError as e:
            logger.error(f"Comparison failed: {e}")
            self.state.comparison = self.comparator.result
            self.state.comparison_error = COMPARISON_ERROR_MESSAGE
            self.state.comparing = False
            return None

        if result is None:
            return None

        self.state.comparison = result
        self.state.comparison_error = None
        self.state.comparing = False
        return result
