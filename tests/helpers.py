"""Test doubles and sample-data builders shared by the test modules."""

import asyncio
from pathlib import Path
from typing import Any

from crimepe.boundaries import Bounds
from crimepe.errors import ProviderError
from crimepe.models import (
    CategoryStats,
    ComparisonResult,
    DatasetSnapshot,
    Period,
    Scenario,
    ScenarioStats,
)

FIXTURE_DATA_DIR = Path(__file__).parent / "fixtures" / "data"


def square(lon: float, lat: float, size: float = 0.1) -> dict[str, Any]:
    """GeoJSON polygon with its south-west corner at (lon, lat)."""
    return {
        "type": "Polygon",
        "coordinates": [
            [
                [lon, lat],
                [lon + size, lat],
                [lon + size, lat + size],
                [lon, lat + size],
                [lon, lat],
            ]
        ],
    }


class FakeProvider:
    """In-memory DataProvider.

    Responses are served from dicts; a request can be held open on an
    asyncio.Event to simulate slow responses arriving out of order.
    """

    def __init__(self) -> None:
        self.snapshots: dict[tuple[int, int], DatasetSnapshot] = {}
        self.comparisons: list[ComparisonResult | Exception] = []
        self.period_calls: list[Period] = []
        self.comparison_calls: list[tuple[Scenario, Scenario]] = []
        self.gates: dict[tuple[int, int], asyncio.Event] = {}
        self.comparison_gates: list[asyncio.Event | None] = []
        self.fail_periods: set[tuple[int, int]] = set()

    async def fetch_period(self, period: Period) -> DatasetSnapshot:
        key = (period.year, period.month)
        self.period_calls.append(period)
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        if key in self.fail_periods:
            raise ProviderError(f"No data for {key}")
        return self.snapshots[key]

    async def fetch_comparison(self, a: Scenario, b: Scenario) -> ComparisonResult:
        index = len(self.comparison_calls)
        self.comparison_calls.append((a, b))
        gate = self.comparison_gates[index] if index < len(self.comparison_gates) else None
        if gate is not None:
            await gate.wait()
        response = self.comparisons[index]
        if isinstance(response, Exception):
            raise response
        return response


class RecordingSurface:
    """RenderingSurface that records every call."""

    def __init__(self) -> None:
        self.fits: list[tuple[Bounds, int, int | None]] = []
        self.restyles = 0
        self.tooltips: list[bool] = []

    def fit_bounds(self, bounds: Bounds, padding: int, max_zoom: int | None = None) -> None:
        self.fits.append((bounds, padding, max_zoom))

    def restyle(self) -> None:
        self.restyles += 1

    def set_tooltips_enabled(self, enabled: bool) -> None:
        self.tooltips.append(enabled)


def make_comparison(
    violence_a: int = 160,
    violence_b: int = 40,
    municipality_a: str = "RECIFE",
    municipality_b: str = "CARUARU",
) -> ComparisonResult:
    """Comparison result with given violence totals."""
    return ComparisonResult(
        stats_a=ScenarioStats(
            scenario=Scenario(municipality=municipality_a, year=2024, month=0),
            population=1_650_000,
            violence=CategoryStats(total=violence_a),
        ),
        stats_b=ScenarioStats(
            scenario=Scenario(municipality=municipality_b, year=2024, month=0),
            population=365_000,
            violence=CategoryStats(total=violence_b),
        ),
    )
