"""FastAPI application serving crime statistics for Pernambuco municipalities.

Provides:
- /api/mapa/{ano}/{mes}: Per-municipality counts as a GeoJSON FeatureCollection
- /api/comparar: Totals and subtype breakdowns for two scenarios
- /api/municipios: Municipality names for selection lists
- /health: Health check endpoint

Usage:
    python -m crimepe.api.main [--port 5000] [--root DIR]
"""

import argparse
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import duckdb
from fastapi import FastAPI, HTTPException, Request

from crimepe.api.queries import (
    get_municipality_count,
    is_valid_month,
    list_municipalities,
    query_period,
    query_scenario,
)
from crimepe.api.schemas import (
    ComparisonRequest,
    ComparisonResponse,
    HealthResponse,
    MunicipalityCollection,
    MunicipalityFeature,
    MunicipalityList,
    MunicipalityProperties,
    ScenarioPayload,
    ScenarioQuery,
)
from crimepe.boundaries import normalize_name
from crimepe.config import Config
from crimepe.data_access import init_database


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - initialize and cleanup database."""
    root_dir: Path = getattr(app.state, "root_dir", Path(__file__).parent.parent.parent)
    config_path = root_dir / "config.toml"
    config = Config.from_file(config_path) if config_path.exists() else Config()
    data_dir = config.data_dir if config.data_dir.is_absolute() else root_dir / config.data_dir

    try:
        print(f"Initializing database from {data_dir}...")
        app.state.db = init_database(data_dir, config)
        count = get_municipality_count(app.state.db)
        print(f"✓ Database ready with {count:,} municipalities")
    except FileNotFoundError as e:
        print(f"⚠ Warning: {e}")
        print("  API will run but data endpoints will return 503")
        app.state.db = None

    yield

    # Cleanup
    if app.state.db:
        app.state.db.close()


# API metadata for OpenAPI docs
app = FastAPI(
    title="crimepe API",
    description="Domestic violence and rape statistics for Pernambuco municipalities",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


def get_db(request: Request) -> duckdb.DuckDBPyConnection:
    """Get database connection from app state.

    Args:
        request: FastAPI request object

    Returns:
        DuckDB connection

    Raises:
        HTTPException: If database not initialized
    """
    db: duckdb.DuckDBPyConnection | None = getattr(request.app.state, "db", None)
    if db is None:
        raise HTTPException(status_code=503, detail="Database not initialized")
    return db


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(request: Request) -> HealthResponse:
    """Check API health and return basic stats."""
    try:
        db = get_db(request)
        count = get_municipality_count(db)
        return HealthResponse(status="healthy", municipalities_count=count)
    except HTTPException:
        # Database not initialized - still healthy but no data
        return HealthResponse(status="healthy", municipalities_count=0)


@app.get("/api/municipios", response_model=MunicipalityList, tags=["Statistics"])
async def get_municipalities(request: Request) -> MunicipalityList:
    """List municipality names in alphabetical order."""
    db = get_db(request)
    return MunicipalityList(municipalities=list_municipalities(db))


@app.get("/api/mapa/{ano}/{mes}", response_model=MunicipalityCollection, tags=["Statistics"])
async def get_map(request: Request, ano: int, mes: int) -> MunicipalityCollection:
    """Per-municipality violence and rape counts for a period.

    ``mes`` is 1-12 for a single month or 0 for the whole year. Every
    municipality is present, with zero counts where no incidents occurred.
    The ``valor`` property carries the value the map colours by (domestic
    violence count).
    """
    if not is_valid_month(mes):
        raise HTTPException(status_code=400, detail=f"Invalid month: {mes}")

    db = get_db(request)
    rows = query_period(db, ano, mes)

    features = [
        MunicipalityFeature(
            properties=MunicipalityProperties(
                municipality=row["municipio"],
                population=row["populacao"],
                violence=row["violencia"],
                rape=row["estupro"],
                value=row["violencia"],
            ),
            geometry=row["geometry"],
        )
        for row in rows
    ]
    return MunicipalityCollection(features=features)


def _resolve_scenario(db: duckdb.DuckDBPyConnection, query: ScenarioQuery) -> ScenarioPayload:
    name = normalize_name(query.municipality)
    if not name:
        raise HTTPException(status_code=400, detail="Municipality is required for both scenarios")

    payload = query_scenario(db, name, query.year, query.month)
    if payload is None:
        raise HTTPException(status_code=404, detail=f"Unknown municipality: {query.municipality}")
    return ScenarioPayload.model_validate(payload)


@app.post("/api/comparar", response_model=ComparisonResponse, tags=["Statistics"])
async def compare(request: Request, body: ComparisonRequest) -> ComparisonResponse:
    """Compare two (municipality, year, month) scenarios.

    Each side is resolved independently and returns totals plus subtype
    breakdowns for domestic violence and rape.
    """
    db = get_db(request)
    return ComparisonResponse(
        scenario_a=_resolve_scenario(db, body.scenario_a),
        scenario_b=_resolve_scenario(db, body.scenario_b),
    )


def create_app(root_dir: Path | None = None) -> FastAPI:
    """Create configured FastAPI app.

    Args:
        root_dir: Directory containing config.toml and data/. Defaults to
            project root.

    Returns:
        Configured FastAPI application
    """
    if root_dir is None:
        root_dir = Path(__file__).parent.parent.parent

    # Store root_dir for lifespan to find config and data
    app.state.root_dir = root_dir
    return app


def main() -> None:
    """Run the provider server."""
    import uvicorn

    parser = argparse.ArgumentParser(description="Serve Pernambuco crime statistics over HTTP")
    parser.add_argument("--port", "-p", type=int, default=5000, help="Listen port (default: 5000)")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Directory holding config.toml and the data directory (default: project root)",
    )
    args = parser.parse_args()

    server = create_app(args.root)
    print(f"Serving crimepe on http://{args.host}:{args.port} (docs at /docs)")
    uvicorn.run(server, host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    main()
