"""DuckDB connection management and provider table loading."""

import json
import logging
from pathlib import Path

import duckdb

from crimepe.boundaries import load_boundaries, normalize_name
from crimepe.config import Config

logger = logging.getLogger(__name__)


def create_configured_connection(config: Config) -> duckdb.DuckDBPyConnection:
    """Create in-memory DuckDB connection with standard configuration.

    Args:
        config: Configuration object

    Returns:
        Configured DuckDB connection

    Example:
        >>> from crimepe.config import Config
        >>> conn = create_configured_connection(Config())
        >>> conn.execute("SELECT 42").fetchone()
        (42,)
    """
    conn = duckdb.connect()

    # Apply DuckDB settings from config
    conn.execute(f"SET memory_limit = '{config.duckdb.memory_limit}'")
    conn.execute(f"SET threads = {config.duckdb.threads}")

    return conn


def _find_incidents_file(data_dir: Path) -> Path:
    """Locate incidents data, preferring Parquet over CSV."""
    for name in ("incidents.parquet", "incidents.csv"):
        path = data_dir / name
        if path.exists():
            return path
    raise FileNotFoundError(f"Incidents file not found in {data_dir}")


def load_incidents(conn: duckdb.DuckDBPyConnection, incidents_file: Path) -> None:
    """Create the ``incidents`` table from pre-aggregated counts.

    Expected columns: municipio, ano, mes, categoria ('violencia' or
    'estupro'), tipo, quantidade. Municipality names are normalized.
    """
    conn.execute(f"""
        CREATE OR REPLACE TABLE incidents AS
        SELECT
            UPPER(TRIM(municipio)) AS municipio,
            CAST(ano AS INTEGER) AS ano,
            CAST(mes AS INTEGER) AS mes,
            LOWER(TRIM(categoria)) AS categoria,
            TRIM(tipo) AS tipo,
            CAST(quantidade AS BIGINT) AS quantidade
        FROM '{incidents_file}'
    """)


def load_population(conn: duckdb.DuckDBPyConnection, population_file: Path | None) -> None:
    """Create the ``population`` table (municipio, populacao).

    A missing file yields an empty table; municipalities then report
    population 0 and a rate of 0.
    """
    if population_file is None or not population_file.exists():
        logger.warning("Population file not found, populations default to 0")
        conn.execute("""
            CREATE OR REPLACE TABLE population (municipio VARCHAR, populacao BIGINT)
        """)
        return

    conn.execute(f"""
        CREATE OR REPLACE TABLE population AS
        SELECT
            UPPER(TRIM(municipio)) AS municipio,
            CAST(populacao AS BIGINT) AS populacao
        FROM '{population_file}'
    """)


def load_boundary_table(conn: duckdb.DuckDBPyConnection, boundaries_file: Path) -> None:
    """Create the ``boundaries`` table (municipio, geometry as GeoJSON text)."""
    geojson = load_boundaries(boundaries_file)
    rows = [
        (
            normalize_name(feature["properties"]["municipio"]),
            json.dumps(feature.get("geometry")) if feature.get("geometry") else None,
        )
        for feature in geojson["features"]
    ]
    conn.execute("""
        CREATE OR REPLACE TABLE boundaries (municipio VARCHAR, geometry VARCHAR)
    """)
    if rows:
        conn.executemany("INSERT INTO boundaries VALUES (?, ?)", rows)


def init_database(data_dir: Path, config: Config | None = None) -> duckdb.DuckDBPyConnection:
    """Initialize DuckDB with incidents, population and boundaries tables.

    Args:
        data_dir: Directory containing incidents.{parquet,csv},
            population.csv and boundaries.geojson
        config: Configuration object (defaults if None)

    Returns:
        Configured DuckDB connection with all tables loaded

    Raises:
        FileNotFoundError: If incidents or boundaries data is missing
    """
    if config is None:
        config = Config()

    incidents_file = _find_incidents_file(data_dir)
    boundaries_file = data_dir / "boundaries.geojson"
    if not boundaries_file.exists():
        raise FileNotFoundError(f"Boundaries file not found: {boundaries_file}")

    conn = create_configured_connection(config)
    try:
        load_incidents(conn, incidents_file)
        load_population(conn, data_dir / "population.csv")
        load_boundary_table(conn, boundaries_file)
    except Exception:
        conn.close()
        raise

    logger.info(f"Loaded provider tables from {data_dir}")
    return conn
