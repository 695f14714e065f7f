"""Shared pytest fixtures for crimepe tests."""

from collections.abc import Generator

import duckdb
import pytest
from helpers import FIXTURE_DATA_DIR, FakeProvider, RecordingSurface, square

from crimepe.config import Config
from crimepe.data_access import init_database
from crimepe.models import DatasetSnapshot, MunicipalityRecord, Period


@pytest.fixture
def test_config() -> Config:
    """Create test configuration with safe defaults.

    Returns:
        Config object with test-specific settings
    """
    config = Config()
    # Override for tests
    config.data_dir = FIXTURE_DATA_DIR
    config.duckdb.memory_limit = "512MB"
    config.duckdb.threads = 1
    return config


@pytest.fixture
def provider_db(test_config: Config) -> Generator[duckdb.DuckDBPyConnection]:
    """In-memory DuckDB loaded with the fixture incidents, population and boundaries.

    Yields:
        Configured DuckDB connection

    Note:
        Connection is automatically closed after test
    """
    conn = init_database(FIXTURE_DATA_DIR, test_config)
    yield conn
    conn.close()


@pytest.fixture
def recife_caruaru() -> list[MunicipalityRecord]:
    """Two-municipality dataset with known totals, rates and rankings."""
    return [
        MunicipalityRecord(
            name="RECIFE",
            population=1_650_000,
            violence_count=120,
            rape_count=30,
            boundary=square(-35.0, -8.1),
        ),
        MunicipalityRecord(
            name="CARUARU",
            population=365_000,
            violence_count=40,
            rape_count=10,
            boundary=square(-36.0, -8.3),
        ),
    ]


@pytest.fixture
def snapshot_2024(recife_caruaru: list[MunicipalityRecord]) -> DatasetSnapshot:
    """Whole-year 2024 snapshot of the two-municipality dataset."""
    return DatasetSnapshot(period=Period(year=2024, month=0), records=tuple(recife_caruaru))


@pytest.fixture
def snapshot_2024_01() -> DatasetSnapshot:
    """January 2024 snapshot with different counts."""
    return DatasetSnapshot(
        period=Period(year=2024, month=1),
        records=(
            MunicipalityRecord(
                name="RECIFE",
                population=1_650_000,
                violence_count=80,
                rape_count=30,
                boundary=square(-35.0, -8.1),
            ),
            MunicipalityRecord(
                name="OLINDA",
                population=390_000,
                violence_count=0,
                rape_count=0,
                boundary=square(-34.9, -8.0),
            ),
        ),
    )


@pytest.fixture
def fake_provider(
    snapshot_2024: DatasetSnapshot, snapshot_2024_01: DatasetSnapshot
) -> FakeProvider:
    """FakeProvider serving the 2024 and January 2024 snapshots."""
    provider = FakeProvider()
    provider.snapshots[(2024, 0)] = snapshot_2024
    provider.snapshots[(2024, 1)] = snapshot_2024_01
    return provider


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()
