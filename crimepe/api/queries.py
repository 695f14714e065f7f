"""Database query functions for the statistics provider.

Executes parameterized queries against DuckDB tables loaded by
crimepe.data_access: ``incidents`` (pre-aggregated counts per municipality,
month, category and subtype), ``population`` and ``boundaries``.

Month 0 selects the whole year.
"""

import json
from typing import Any

import duckdb

# Category values in the incidents table
VIOLENCE = "violencia"
RAPE = "estupro"

# Months are 1..12, 0 means the whole year
MONTH_RANGE = range(0, 13)


def is_valid_month(month: int) -> bool:
    """Check if a month parameter is 0 (whole year) or a calendar month."""
    return month in MONTH_RANGE


def query_period(conn: duckdb.DuckDBPyConnection, year: int, month: int) -> list[dict[str, Any]]:
    """Per-municipality counts for a period.

    Every municipality with a boundary appears, with zero counts if it had
    no incidents in the period.

    Args:
        conn: DuckDB connection with provider tables
        year: Year to query
        month: Month (1-12) or 0 for the whole year

    Returns:
        List of dicts with municipio, populacao, violencia, estupro and
        geometry (decoded GeoJSON or None), ordered by municipality name

    Raises:
        ValueError: If month is out of range
    """
    if not is_valid_month(month):
        raise ValueError(f"Invalid month: {month}")

    rows = conn.execute(
        """
        WITH counts AS (
            SELECT
                municipio,
                SUM(CASE WHEN categoria = ? THEN quantidade ELSE 0 END) AS violencia,
                SUM(CASE WHEN categoria = ? THEN quantidade ELSE 0 END) AS estupro
            FROM incidents
            WHERE ano = ? AND (? = 0 OR mes = ?)
            GROUP BY municipio
        )
        SELECT
            b.municipio,
            COALESCE(p.populacao, 0) AS populacao,
            COALESCE(c.violencia, 0) AS violencia,
            COALESCE(c.estupro, 0) AS estupro,
            b.geometry
        FROM boundaries b
        LEFT JOIN population p ON p.municipio = b.municipio
        LEFT JOIN counts c ON c.municipio = b.municipio
        ORDER BY b.municipio
        """,
        [VIOLENCE, RAPE, year, month, month],
    ).fetchall()

    return [
        {
            "municipio": row[0],
            "populacao": int(row[1]),
            "violencia": int(row[2]),
            "estupro": int(row[3]),
            "geometry": json.loads(row[4]) if row[4] else None,
        }
        for row in rows
    ]


def municipality_exists(conn: duckdb.DuckDBPyConnection, municipality: str) -> bool:
    """Check whether a municipality has a boundary or population entry."""
    result = conn.execute(
        """
        SELECT COUNT(*) FROM (
            SELECT municipio FROM boundaries WHERE municipio = ?
            UNION
            SELECT municipio FROM population WHERE municipio = ?
        )
        """,
        [municipality, municipality],
    ).fetchone()
    return bool(result and result[0])


def _category_payload(rows: list[tuple[str, int]]) -> dict[str, Any]:
    total = sum(count for _, count in rows)
    return {
        "total": total,
        "detalhes": [
            {
                "tipo": subtype,
                "qtd": count,
                "pct": round(count / total * 100, 1) if total else 0.0,
            }
            for subtype, count in rows
        ],
    }


def query_scenario(
    conn: duckdb.DuckDBPyConnection,
    municipality: str,
    year: int,
    month: int,
) -> dict[str, Any] | None:
    """Totals and subtype breakdown for one municipality and period.

    Args:
        conn: DuckDB connection with provider tables
        municipality: Normalized municipality name
        year: Year to query
        month: Month (1-12) or 0 for the whole year

    Returns:
        Scenario payload dict (Portuguese wire keys), or None if the
        municipality is unknown

    Raises:
        ValueError: If month is out of range
    """
    if not is_valid_month(month):
        raise ValueError(f"Invalid month: {month}")
    if not municipality_exists(conn, municipality):
        return None

    rows = conn.execute(
        """
        SELECT categoria, tipo, SUM(quantidade) AS qtd
        FROM incidents
        WHERE municipio = ? AND ano = ? AND (? = 0 OR mes = ?)
        GROUP BY categoria, tipo
        HAVING SUM(quantidade) > 0
        ORDER BY qtd DESC, tipo
        """,
        [municipality, year, month, month],
    ).fetchall()

    by_category: dict[str, list[tuple[str, int]]] = {VIOLENCE: [], RAPE: []}
    for category, subtype, count in rows:
        if category in by_category:
            by_category[category].append((subtype, int(count)))

    population = conn.execute(
        "SELECT COALESCE(MAX(populacao), 0) FROM population WHERE municipio = ?",
        [municipality],
    ).fetchone()

    return {
        "municipio": municipality,
        "ano": year,
        "mes": month,
        "populacao": int(population[0]) if population else 0,
        "violencia": _category_payload(by_category[VIOLENCE]),
        "estupro": _category_payload(by_category[RAPE]),
    }


def list_municipalities(conn: duckdb.DuckDBPyConnection) -> list[str]:
    """All municipality names with boundaries, alphabetically."""
    result = conn.execute("SELECT municipio FROM boundaries ORDER BY municipio").fetchall()
    return [r[0] for r in result]


def get_municipality_count(conn: duckdb.DuckDBPyConnection) -> int:
    """Number of municipalities with boundaries loaded."""
    result = conn.execute("SELECT COUNT(*) FROM boundaries").fetchone()
    return result[0] if result else 0
