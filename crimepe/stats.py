"""Aggregation, rate normalization and ranking over a dataset snapshot.

All functions are pure and recompute from their inputs on every call.

Ranking tie-break: sorting is stable, so municipalities with equal metric
values keep their snapshot order and the earlier one gets the better rank.
Ties never share a rank.
"""

from collections.abc import Callable, Iterable, Sequence

from crimepe.models import BreakdownItem, MunicipalityRecord, MunicipalityStats, StateTotals

# Rates are expressed per this many residents
RATE_BASIS = 100_000

Selector = Callable[[MunicipalityRecord], float]


def rate(count: int | None, population: int | None) -> float:
    """Incidents per 100,000 residents.

    Populations of 0 or 1 are placeholders for unknown values and yield 0
    instead of an extreme rate.

    Args:
        count: Absolute incident count (None treated as 0)
        population: Resident count

    Returns:
        Unrounded rate per 100k
    """
    if population is None or population <= 1:
        return 0.0
    return (count or 0) / population * RATE_BASIS


def format_rate(value: float) -> str:
    """Render a rate with one decimal place."""
    return f"{value:.1f}"


def aggregate_totals(records: Iterable[MunicipalityRecord]) -> StateTotals:
    """Sum violence and rape counts across all records.

    Args:
        records: Municipality records of one snapshot

    Returns:
        State-wide totals
    """
    violence = 0
    rape = 0
    for record in records:
        violence += record.violence_count or 0
        rape += record.rape_count or 0
    return StateTotals(violence=violence, rape=rape)


def violence_absolute(record: MunicipalityRecord) -> float:
    return record.violence_count or 0


def violence_per_capita(record: MunicipalityRecord) -> float:
    return rate(record.violence_count, record.population)


def rape_absolute(record: MunicipalityRecord) -> float:
    return record.rape_count or 0


def rape_per_capita(record: MunicipalityRecord) -> float:
    return rate(record.rape_count, record.population)


SELECTORS: dict[str, Selector] = {
    "violence_absolute": violence_absolute,
    "violence_per_capita": violence_per_capita,
    "rape_absolute": rape_absolute,
    "rape_per_capita": rape_per_capita,
}


def rank(records: Sequence[MunicipalityRecord], name: str, selector: Selector) -> int | None:
    """1-based position of a municipality when ordered by a metric, descending.

    Args:
        records: Records in snapshot order (not modified)
        name: Municipality to locate
        selector: Extracts the metric from a record

    Returns:
        Rank in [1, len(records)], or None if the municipality is absent
    """
    record = next((r for r in records if r.name == name), None)
    return _position(records, record, selector) if record is not None else None


def _position(
    records: Sequence[MunicipalityRecord], record: MunicipalityRecord, selector: Selector
) -> int:
    # sorted() is stable, reverse=True keeps equal keys in original order
    ordered = sorted(records, key=selector, reverse=True)
    return next(i for i, r in enumerate(ordered, start=1) if r is record)


def municipality_stats(
    records: Sequence[MunicipalityRecord], name: str | None
) -> MunicipalityStats | None:
    """Detail block with rates and the four rankings for one municipality.

    Args:
        records: Records of the current snapshot
        name: Selected municipality

    Returns:
        MunicipalityStats, or None when nothing is selected or the name is
        not in the snapshot
    """
    if not name:
        return None
    record = next((r for r in records if r.name == name), None)
    if record is None:
        return None

    population = record.population or 1
    ranks = {key: _position(records, record, selector) for key, selector in SELECTORS.items()}

    return MunicipalityStats(
        name=name,
        population=population,
        violence_count=record.violence_count,
        rape_count=record.rape_count,
        violence_rate=rate(record.violence_count, population),
        rape_rate=rate(record.rape_count, population),
        rank_violence_absolute=ranks["violence_absolute"],
        rank_violence_per_capita=ranks["violence_per_capita"],
        rank_rape_absolute=ranks["rape_absolute"],
        rank_rape_per_capita=ranks["rape_per_capita"],
        total_municipalities=len(records),
    )


def build_breakdown(counts: Iterable[tuple[str, int]]) -> tuple[BreakdownItem, ...]:
    """Subtype breakdown with each subtype's percentage of the category total.

    Args:
        counts: (subtype, count) pairs in display order

    Returns:
        Breakdown items, percentages unrounded (0 when the total is 0)
    """
    pairs = list(counts)
    total = sum(count for _, count in pairs)
    return tuple(
        BreakdownItem(
            subtype=subtype,
            count=count,
            percent_of_total=(count / total * 100) if total else 0.0,
        )
        for subtype, count in pairs
    )


def two_way_share(value_a: float, value_b: float) -> tuple[float, float]:
    """Split of a paired value between two scenarios, in percent.

    Returns:
        (pct_a, pct_b); (0.0, 0.0) when both values are 0
    """
    denominator = (value_a + value_b) or 1
    pct_a = value_a / denominator * 100
    pct_b = value_b / denominator * 100
    return pct_a, pct_b
