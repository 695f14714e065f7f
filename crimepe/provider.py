"""Client side of the statistics provider.

Defines the DataProvider protocol the dashboard depends on and an HTTP
implementation talking to the provider service (crimepe.api.main).

Payloads are validated with the wire schemas and converted to core models.
Subtype percentages are recomputed from counts so the core keeps full
precision; the one-decimal ``pct`` on the wire is display data.
"""

import asyncio
import http.client
import json
import logging
import urllib.error
import urllib.request
from typing import Any, Protocol

from pydantic import ValidationError as SchemaValidationError

from crimepe.api.schemas import (
    CategoryPayload,
    ComparisonRequest,
    ComparisonResponse,
    MunicipalityCollection,
    ScenarioPayload,
    ScenarioQuery,
)
from crimepe.config import ProviderConfig
from crimepe.errors import ProviderError
from crimepe.models import (
    CategoryStats,
    ComparisonResult,
    DatasetSnapshot,
    MunicipalityRecord,
    Period,
    Scenario,
    ScenarioStats,
)
from crimepe.stats import build_breakdown, rate

logger = logging.getLogger(__name__)


class DataProvider(Protocol):
    """Source of period snapshots and scenario comparisons."""

    async def fetch_period(self, period: Period) -> DatasetSnapshot: ...

    async def fetch_comparison(self, a: Scenario, b: Scenario) -> ComparisonResult: ...


def parse_period_payload(payload: Any, period: Period) -> DatasetSnapshot:
    """Convert a map FeatureCollection into a snapshot.

    Args:
        payload: Decoded JSON from the map endpoint
        period: Period the payload was requested for

    Returns:
        DatasetSnapshot with records in payload order

    Raises:
        ProviderError: If the payload doesn't match the expected schema
    """
    try:
        collection = MunicipalityCollection.model_validate(payload)
        records = tuple(
            MunicipalityRecord(
                name=feature.properties.municipality,
                population=feature.properties.population,
                violence_count=feature.properties.violence,
                rape_count=feature.properties.rape,
                boundary=feature.geometry,
            )
            for feature in collection.features
        )
        return DatasetSnapshot(period=period, records=records)
    except SchemaValidationError as e:
        raise ProviderError(f"Invalid map payload for {period.year}/{period.month}: {e}") from e


def _category_stats(payload: CategoryPayload, population: int) -> CategoryStats:
    return CategoryStats(
        total=payload.total,
        rate=rate(payload.total, population),
        breakdown=build_breakdown((d.subtype, d.count) for d in payload.details),
    )


def _scenario_stats(payload: ScenarioPayload) -> ScenarioStats:
    return ScenarioStats(
        scenario=Scenario(
            municipality=payload.municipality,
            year=payload.year,
            month=payload.month,
        ),
        population=payload.population,
        violence=_category_stats(payload.violence, payload.population),
        rape=_category_stats(payload.rape, payload.population),
    )


def parse_comparison_payload(payload: Any) -> ComparisonResult:
    """Convert a comparison response into a ScenarioStats pair.

    Raises:
        ProviderError: If either side is missing or malformed
    """
    try:
        response = ComparisonResponse.model_validate(payload)
        return ComparisonResult(
            stats_a=_scenario_stats(response.scenario_a),
            stats_b=_scenario_stats(response.scenario_b),
        )
    except SchemaValidationError as e:
        raise ProviderError(f"Invalid comparison payload: {e}") from e


def comparison_request_body(a: Scenario, b: Scenario) -> dict[str, Any]:
    """JSON body for the comparison endpoint."""
    request = ComparisonRequest(
        scenario_a=ScenarioQuery(municipality=a.municipality, year=a.year, month=a.month),
        scenario_b=ScenarioQuery(municipality=b.municipality, year=b.year, month=b.month),
    )
    return request.model_dump(by_alias=True)


class HttpDataProvider:
    """DataProvider backed by the provider service over HTTP.

    Requests are blocking urllib calls run in a worker thread, so awaiting
    them does not block the event loop.
    """

    def __init__(self, config: ProviderConfig | None = None) -> None:
        self.config = config or ProviderConfig()

    async def fetch_period(self, period: Period) -> DatasetSnapshot:
        url = f"{self.config.base_url}/api/mapa/{period.year}/{period.month}"
        payload = await asyncio.to_thread(self._request, url)
        snapshot = parse_period_payload(payload, period)
        logger.info(f"Loaded {len(snapshot.records)} municipalities for {period.label}")
        return snapshot

    async def fetch_comparison(self, a: Scenario, b: Scenario) -> ComparisonResult:
        url = f"{self.config.base_url}/api/comparar"
        body = comparison_request_body(a, b)
        payload = await asyncio.to_thread(self._request, url, body)
        return parse_comparison_payload(payload)

    def _request(self, url: str, body: dict[str, Any] | None = None) -> Any:
        """Perform a GET (or POST when body is given) and decode the JSON response.

        Raises:
            ProviderError: On transport or connection failure, HTTP error status,
                or a body that is not valid UTF-8 JSON
        """
        data = json.dumps(body).encode("utf-8") if body is not None else None
        req = urllib.request.Request(
            url,
            data=data,
            headers={"Content-Type": "application/json"},
        )
        logger.info(f"Requesting {url}")
        try:
            with urllib.request.urlopen(req, timeout=self.config.timeout) as response:
                return json.load(response)
        except urllib.error.HTTPError as e:
            raise ProviderError(f"Provider returned HTTP {e.code} for {url}") from e
        except (urllib.error.URLError, TimeoutError) as e:
            raise ProviderError(f"Provider unreachable at {url}: {e}") from e
        except json.JSONDecodeError as e:
            raise ProviderError(f"Provider returned invalid JSON for {url}: {e}") from e
        except ValueError as e:
            # UnicodeDecodeError on a body that is not UTF-8
            raise ProviderError(f"Provider returned an undecodable body for {url}: {e}") from e
        except (http.client.HTTPException, OSError) as e:
            # RemoteDisconnected and resets are not wrapped in URLError
            raise ProviderError(f"Provider connection failed for {url}: {e}") from e
