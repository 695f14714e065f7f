"""Pydantic schemas for the statistics provider wire format.

Defines the contract of the map and comparison endpoints. The JSON keys are
Portuguese (``municipio``, ``violencia``, ``estupro`` ...) to stay compatible
with existing dashboard clients; Python attribute names are English and map
to the wire keys through aliases.

The same models validate responses on the client side (crimepe.provider).
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """Base for wire models: accept both alias and attribute names."""

    model_config = ConfigDict(populate_by_name=True)


class MunicipalityProperties(WireModel):
    """Properties of one municipality feature in the map payload."""

    municipality: str = Field(alias="municipio", description="Municipality name")
    population: int = Field(default=0, ge=0, alias="populacao", description="Residents")
    violence: int = Field(default=0, ge=0, alias="violencia", description="Domestic violence")
    rape: int = Field(default=0, ge=0, alias="estupro", description="Rape incidents")
    value: int = Field(
        default=0, ge=0, alias="valor", description="Value the choropleth colours by"
    )


class MunicipalityFeature(WireModel):
    """GeoJSON feature for one municipality."""

    type: Literal["Feature"] = "Feature"
    properties: MunicipalityProperties
    geometry: dict[str, Any] | None = Field(default=None, description="Boundary geometry")


class MunicipalityCollection(WireModel):
    """GeoJSON FeatureCollection returned by the map endpoint."""

    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[MunicipalityFeature] = Field(default_factory=list)


class ScenarioQuery(WireModel):
    """One side of a comparison request."""

    municipality: str = Field(alias="municipio", description="Municipality name")
    year: int = Field(alias="ano", description="Year")
    month: int = Field(default=0, ge=0, le=12, alias="mes", description="Month, 0 = whole year")


class ComparisonRequest(WireModel):
    """Body of the comparison endpoint."""

    scenario_a: ScenarioQuery = Field(alias="cenarioA")
    scenario_b: ScenarioQuery = Field(alias="cenarioB")


class BreakdownEntry(WireModel):
    """Subtype count with its share of the category total."""

    subtype: str = Field(alias="tipo", description="Crime subtype")
    count: int = Field(ge=0, alias="qtd", description="Incidents of this subtype")
    percent: float = Field(default=0.0, alias="pct", description="Share of total, 1 decimal")


class CategoryPayload(WireModel):
    """Total and subtype breakdown for one category."""

    total: int = Field(ge=0, description="Incidents in the category")
    details: list[BreakdownEntry] = Field(default_factory=list, alias="detalhes")


class ScenarioPayload(WireModel):
    """Resolved statistics for one scenario."""

    municipality: str = Field(alias="municipio")
    year: int = Field(alias="ano")
    month: int = Field(ge=0, le=12, alias="mes")
    population: int = Field(default=0, ge=0, alias="populacao")
    violence: CategoryPayload = Field(alias="violencia")
    rape: CategoryPayload = Field(alias="estupro")


class ComparisonResponse(WireModel):
    """Pair of scenario statistics."""

    scenario_a: ScenarioPayload = Field(alias="cenarioA")
    scenario_b: ScenarioPayload = Field(alias="cenarioB")


class MunicipalityList(BaseModel):
    """Municipality names available to select."""

    municipalities: list[str] = Field(description="Names in alphabetical order")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service status")
    municipalities_count: int = Field(description="Municipalities with boundaries loaded")
