"""Municipality boundary loading and bounding-box helpers.

Boundaries come from a GeoJSON FeatureCollection where each feature carries
the municipality name in ``properties.municipio``. Geometry is opaque to the
statistics code; it is used here only to compute viewport bounds.

Key functions:
- normalize_name(): Whitespace/case normalization for name matching
- load_boundaries(): Read the GeoJSON file from disk
- geometry_bounds(): Bounding box of one geometry
- combined_bounds(): Bounding box of several geometries
"""

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any, NamedTuple

from shapely.geometry import shape

logger = logging.getLogger(__name__)


class Bounds(NamedTuple):
    """Bounding box in lon/lat order."""

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float


def normalize_name(name: str) -> str:
    """Normalize municipality name for matching.

    Provider tables spell names in upper case ("RECIFE") while some
    sources use title case or carry stray whitespace.

    Args:
        name: Municipality name to normalize

    Returns:
        Stripped, upper-case name
    """
    return name.strip().upper()


def load_boundaries(path: Path) -> dict[str, Any]:
    """Load municipality boundaries GeoJSON.

    Args:
        path: Path to boundaries.geojson

    Returns:
        GeoJSON FeatureCollection dict

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not a FeatureCollection
    """
    if not path.exists():
        raise FileNotFoundError(f"Boundaries file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data: dict[str, Any] = json.load(f)

    if data.get("type") != "FeatureCollection":
        raise ValueError(f"Expected a FeatureCollection in {path}")

    logger.info(f"Loaded {len(data.get('features', []))} municipality boundaries from {path}")
    return data


def geometry_bounds(geometry: dict[str, Any] | None) -> Bounds | None:
    """Bounding box of a GeoJSON geometry.

    Returns:
        Bounds, or None for a missing or empty geometry
    """
    if not geometry:
        return None
    geom = shape(geometry)
    if geom.is_empty:
        return None
    return Bounds(*geom.bounds)


def combined_bounds(geometries: Iterable[dict[str, Any] | None]) -> Bounds | None:
    """Bounding box covering all given geometries.

    Returns:
        Bounds, or None if no geometry is usable
    """
    shapes = [shape(g) for g in geometries if g]
    shapes = [s for s in shapes if not s.is_empty]
    if not shapes:
        return None
    boxes = [s.bounds for s in shapes]
    return Bounds(
        min(b[0] for b in boxes),
        min(b[1] for b in boxes),
        max(b[2] for b in boxes),
        max(b[3] for b in boxes),
    )
