"""Error taxonomy for statistics computation and provider access.

A municipality missing from a snapshot is not an error: lookups return None
and callers render "no data".
"""


class CrimeStatsError(Exception):
    """Base class for crimepe errors."""

    pass


class ValidationError(CrimeStatsError):
    """Local precondition failure, raised before any provider request."""

    pass


class ProviderError(CrimeStatsError):
    """Provider request failed or returned data that could not be parsed."""

    pass


class ConfigError(CrimeStatsError):
    """Configuration file could not be loaded or validated."""

    pass
