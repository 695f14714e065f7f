"""Configuration management with Pydantic validation."""

import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as SchemaValidationError

from crimepe.errors import ConfigError


class ProviderConfig(BaseModel):
    """Configuration for the statistics data provider."""

    base_url: str = Field(default="http://127.0.0.1:5000")
    timeout: float = Field(default=30.0)

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Ensure timeout is positive."""
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Drop trailing slash so paths can be appended directly."""
        return v.rstrip("/")


class DuckDBConfig(BaseModel):
    """Configuration for DuckDB execution."""

    memory_limit: str = Field(default="1GB")
    threads: int = Field(default=2)


class DashboardConfig(BaseModel):
    """Initial period and selectable year range."""

    default_year: int = Field(default=2024)
    default_month: int = Field(default=1)
    first_year: int = Field(default=2015)
    last_year: int = Field(default=2025)

    @field_validator("default_month")
    @classmethod
    def validate_month(cls, v: int) -> int:
        """Ensure month is 0 (whole year) or a calendar month."""
        if not 0 <= v <= 12:
            raise ValueError("Month must be between 0 and 12")
        return v

    @model_validator(mode="after")
    def validate_year_range(self) -> "DashboardConfig":
        """Ensure the default year lies within the selectable range."""
        if not self.first_year <= self.default_year <= self.last_year:
            raise ValueError(
                f"default_year {self.default_year} outside "
                f"{self.first_year}..{self.last_year}"
            )
        return self

    def available_years(self) -> list[int]:
        """Selectable years, most recent first."""
        return list(range(self.last_year, self.first_year - 1, -1))


class Config(BaseModel):
    """Main configuration."""

    data_dir: Path = Field(default=Path("data"))
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    duckdb: DuckDBConfig = Field(default_factory=DuckDBConfig)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "Config":
        """Load configuration from TOML file.

        Args:
            path: Path to config.toml file

        Returns:
            Validated Config object

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigError: If the TOML is malformed or validation fails
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config not found: {path}")

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML syntax: {e}") from e

        try:
            return cls(**data)
        except SchemaValidationError as e:
            raise ConfigError(f"Invalid configuration structure: {e}") from e
