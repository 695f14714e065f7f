"""Tests for scenario comparison and stale-response handling."""

import asyncio

import pytest
from helpers import FakeProvider, make_comparison

from crimepe.comparator import ScenarioComparator, share, validate_scenario
from crimepe.errors import ProviderError, ValidationError
from crimepe.models import ComparisonResult, Scenario

RECIFE = Scenario(municipality="RECIFE", year=2024, month=0)
CARUARU = Scenario(municipality="CARUARU", year=2024, month=0)


class TestValidation:
    """Scenarios without a municipality never reach the provider."""

    @pytest.mark.parametrize("municipality", ["", "   "])
    def test_empty_municipality_a(self, fake_provider: FakeProvider, municipality: str) -> None:
        comparator = ScenarioComparator(fake_provider)
        empty = Scenario(municipality=municipality, year=2024, month=0)

        with pytest.raises(ValidationError, match="Scenario A"):
            asyncio.run(comparator.compare(empty, CARUARU))

        assert fake_provider.comparison_calls == []
        assert comparator.generation == 1

    def test_empty_municipality_b(self, fake_provider: FakeProvider) -> None:
        comparator = ScenarioComparator(fake_provider)
        empty = Scenario(year=2024, month=0)

        with pytest.raises(ValidationError, match="Scenario B"):
            asyncio.run(comparator.compare(RECIFE, empty))

        assert fake_provider.comparison_calls == []

    def test_validate_scenario_is_synchronous(self) -> None:
        with pytest.raises(ValidationError):
            validate_scenario(Scenario(year=2024), "A")
        validate_scenario(RECIFE, "A")


class TestCompare:
    """Tests for successful and failed comparisons."""

    def test_result_stored(self, fake_provider: FakeProvider) -> None:
        expected = make_comparison()
        fake_provider.comparisons = [expected]
        comparator = ScenarioComparator(fake_provider)

        result = asyncio.run(comparator.compare(RECIFE, CARUARU))

        assert result == expected
        assert comparator.result == expected
        assert fake_provider.comparison_calls == [(RECIFE, CARUARU)]

    def test_provider_error_keeps_previous_result(self, fake_provider: FakeProvider) -> None:
        first = make_comparison()
        fake_provider.comparisons = [first, ProviderError("unparseable")]
        comparator = ScenarioComparator(fake_provider)

        asyncio.run(comparator.compare(RECIFE, CARUARU))
        with pytest.raises(ProviderError):
            asyncio.run(comparator.compare(RECIFE, CARUARU))

        assert comparator.result == first

    def test_same_scenario_on_both_sides(self, fake_provider: FakeProvider) -> None:
        fake_provider.comparisons = [make_comparison(municipality_b="RECIFE")]
        comparator = ScenarioComparator(fake_provider)
        result = asyncio.run(comparator.compare(RECIFE, RECIFE))
        assert result is not None


class TestStaleResponses:
    """A response for a superseded comparison is discarded."""

    def test_slow_older_response_discarded(self, fake_provider: FakeProvider) -> None:
        old = make_comparison(violence_a=1, violence_b=1)
        new = make_comparison(violence_a=160, violence_b=40)
        comparator = ScenarioComparator(fake_provider)

        async def run() -> tuple[ComparisonResult | None, ComparisonResult | None]:
            gate = asyncio.Event()
            fake_provider.comparison_gates = [gate, None]
            fake_provider.comparisons = [old, new]

            first = asyncio.create_task(comparator.compare(RECIFE, CARUARU))
            await asyncio.sleep(0)
            second = await comparator.compare(RECIFE, CARUARU)
            gate.set()
            return await first, second

        first_result, second_result = asyncio.run(run())

        assert first_result is None
        assert second_result == new
        assert comparator.result == new
        assert comparator.generation == 2

    def test_stale_failure_ignored(self, fake_provider: FakeProvider) -> None:
        new = make_comparison()
        comparator = ScenarioComparator(fake_provider)

        async def run() -> ComparisonResult | None:
            gate = asyncio.Event()
            fake_provider.comparison_gates = [gate, None]
            fake_provider.comparisons = [ProviderError("timeout"), new]

            first = asyncio.create_task(comparator.compare(RECIFE, CARUARU))
            await asyncio.sleep(0)
            await comparator.compare(RECIFE, CARUARU)
            gate.set()
            return await first

        assert asyncio.run(run()) is None
        assert comparator.result == new

    def test_rejected_attempt_discards_in_flight_comparison(
        self, fake_provider: FakeProvider
    ) -> None:
        comparator = ScenarioComparator(fake_provider)
        empty = Scenario(year=2024, month=0)

        async def run() -> ComparisonResult | None:
            gate = asyncio.Event()
            fake_provider.comparison_gates = [gate]
            fake_provider.comparisons = [make_comparison()]

            in_flight = asyncio.create_task(comparator.compare(RECIFE, CARUARU))
            await asyncio.sleep(0)
            with pytest.raises(ValidationError):
                await comparator.compare(empty, CARUARU)
            gate.set()
            return await in_flight

        assert asyncio.run(run()) is None
        assert comparator.result is None
        assert len(fake_provider.comparison_calls) == 1


class TestShare:
    """Tests for two-way split of comparison fields."""

    def test_violence_share(self) -> None:
        pct_a, pct_b = share(make_comparison(violence_a=160, violence_b=40), "violence")
        assert pct_a == pytest.approx(80.0)
        assert pct_b == pytest.approx(20.0)

    def test_population_share(self) -> None:
        pct_a, _ = share(make_comparison(), "population")
        assert pct_a == pytest.approx(1_650_000 / 2_015_000 * 100)

    def test_both_zero(self) -> None:
        assert share(make_comparison(), "rape") == (0.0, 0.0)
