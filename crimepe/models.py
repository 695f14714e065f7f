"""Pydantic models for municipality records, snapshots and scenario statistics.

Counts and rates are kept at full precision. Rounding happens only when a
value is formatted for display.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Categories reported per municipality, in display order
CATEGORIES: tuple[str, ...] = ("violence", "rape")

ShareField = Literal["population", "violence", "rape"]


class MunicipalityRecord(BaseModel):
    """Counts for one municipality in the active period."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Municipality name, unique within a snapshot")
    population: int = Field(default=0, ge=0, description="Estimated residents")
    violence_count: int = Field(default=0, ge=0, description="Domestic violence incidents")
    rape_count: int = Field(default=0, ge=0, description="Rape incidents")
    boundary: dict[str, Any] | None = Field(
        default=None,
        description="GeoJSON geometry, passed through to the rendering surface",
    )


class Period(BaseModel):
    """Year and month of a dataset. Month 0 means the whole year."""

    model_config = ConfigDict(frozen=True)

    year: int
    month: int = Field(default=0, ge=0, le=12)

    @property
    def is_whole_year(self) -> bool:
        return self.month == 0

    @property
    def label(self) -> str:
        """Header text for the period."""
        if self.is_whole_year:
            return "Acumulado do Ano"
        return f"{self.month}/{self.year}"


class DatasetSnapshot(BaseModel):
    """Immutable set of municipality records for one period.

    Record order is the order received from the provider and acts as the
    tie-break order for rankings.
    """

    model_config = ConfigDict(frozen=True)

    period: Period
    records: tuple[MunicipalityRecord, ...] = ()

    @field_validator("records")
    @classmethod
    def validate_unique_names(
        cls, v: tuple[MunicipalityRecord, ...]
    ) -> tuple[MunicipalityRecord, ...]:
        """Ensure municipality names are unique."""
        seen: set[str] = set()
        for record in v:
            if record.name in seen:
                raise ValueError(f"Duplicate municipality in snapshot: {record.name}")
            seen.add(record.name)
        return v

    def find(self, name: str | None) -> MunicipalityRecord | None:
        """Get the record for a municipality, or None if absent."""
        if not name:
            return None
        for record in self.records:
            if record.name == name:
                return record
        return None

    def municipality_names(self) -> list[str]:
        """Municipality names in alphabetical order."""
        return sorted(record.name for record in self.records)

    def geometries(self) -> list[dict[str, Any]]:
        """All non-null boundaries in the snapshot."""
        return [r.boundary for r in self.records if r.boundary is not None]


class Scenario(BaseModel):
    """Query key for one side of a comparison."""

    model_config = ConfigDict(frozen=True)

    municipality: str = Field(default="", description="Municipality name, empty if unselected")
    year: int
    month: int = Field(default=0, ge=0, le=12)

    @property
    def period(self) -> Period:
        return Period(year=self.year, month=self.month)


class BreakdownItem(BaseModel):
    """One subtype of a category with its share of the category total."""

    model_config = ConfigDict(frozen=True)

    subtype: str
    count: int = Field(ge=0)
    percent_of_total: float = Field(description="count / total * 100, unrounded")


class CategoryStats(BaseModel):
    """Total, per-100k rate and subtype breakdown for one category."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(default=0, ge=0)
    rate: float = Field(default=0.0, description="Incidents per 100,000 residents")
    breakdown: tuple[BreakdownItem, ...] = ()


class ScenarioStats(BaseModel):
    """Resolved statistics for a scenario."""

    model_config = ConfigDict(frozen=True)

    scenario: Scenario
    population: int = Field(default=0, ge=0)
    violence: CategoryStats = Field(default_factory=CategoryStats)
    rape: CategoryStats = Field(default_factory=CategoryStats)


class ComparisonResult(BaseModel):
    """Pair of scenario statistics displayed side by side."""

    model_config = ConfigDict(frozen=True)

    stats_a: ScenarioStats
    stats_b: ScenarioStats

    def paired_values(self, field: ShareField) -> tuple[int, int]:
        """Raw values of a paired field for scenario A and B."""
        if field == "population":
            return self.stats_a.population, self.stats_b.population
        a: CategoryStats = getattr(self.stats_a, field)
        b: CategoryStats = getattr(self.stats_b, field)
        return a.total, b.total


class StateTotals(BaseModel):
    """State-wide incident totals for a snapshot."""

    model_config = ConfigDict(frozen=True)

    violence: int = 0
    rape: int = 0


class MunicipalityStats(BaseModel):
    """Detail block for the selected municipality."""

    model_config = ConfigDict(frozen=True)

    name: str
    population: int
    violence_count: int
    rape_count: int
    violence_rate: float
    rape_rate: float
    rank_violence_absolute: int
    rank_violence_per_capita: int
    rank_rape_absolute: int
    rank_rape_per_capita: int
    total_municipalities: int
