"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest

from crimepe.config import Config, DashboardConfig, ProviderConfig
from crimepe.errors import ConfigError

ROOT_DIR = Path(__file__).parent.parent


def test_config_loads_from_file() -> None:
    """Test config.toml loads successfully."""
    config = Config.from_file(ROOT_DIR / "config.toml")
    assert config.data_dir == Path("data")
    assert config.provider.base_url == "http://127.0.0.1:5000"
    assert config.dashboard.default_year == 2024
    assert config.dashboard.default_month == 1


def test_config_file_not_found() -> None:
    """Test Config.from_file raises error when file doesn't exist."""
    with pytest.raises(FileNotFoundError, match="Config not found"):
        Config.from_file("nonexistent.toml")


def test_config_invalid_toml(tmp_path: Path) -> None:
    path = tmp_path / "broken.toml"
    path.write_text("[provider\nbase_url = ")
    with pytest.raises(ConfigError, match="Invalid TOML syntax"):
        Config.from_file(path)


def test_config_invalid_structure(tmp_path: Path) -> None:
    path = tmp_path / "bad.toml"
    path.write_text("[provider]\ntimeout = -5\n")
    with pytest.raises(ConfigError, match="Invalid configuration structure"):
        Config.from_file(path)


def test_config_defaults() -> None:
    """Test default configuration values."""
    config = Config()
    assert config.data_dir == Path("data")
    assert config.provider.timeout == 30.0
    assert config.duckdb.memory_limit == "1GB"
    assert config.duckdb.threads == 2
    assert config.dashboard.first_year == 2015
    assert config.dashboard.last_year == 2025


def test_provider_base_url_trailing_slash() -> None:
    config = ProviderConfig(base_url="http://localhost:5000/")
    assert config.base_url == "http://localhost:5000"


def test_provider_timeout_must_be_positive() -> None:
    with pytest.raises(ValueError, match="Timeout must be positive"):
        ProviderConfig(timeout=0)


def test_dashboard_month_range() -> None:
    with pytest.raises(ValueError, match="Month must be between 0 and 12"):
        DashboardConfig(default_month=13)


def test_dashboard_year_outside_range() -> None:
    with pytest.raises(ValueError, match="outside"):
        DashboardConfig(default_year=2030)


def test_available_years_most_recent_first() -> None:
    years = DashboardConfig().available_years()
    assert years[0] == 2025
    assert years[-1] == 2015
    assert len(years) == 11
