"""
GeoJSON geometry helpers.

Common patterns for moving between GeoJSON geometry dicts and the plain
coordinate tuples used during assembly: coordinate extraction and
Point / LineString / Polygon / MultiPolygon construction.
"""

from __future__ import annotations

import copy
from typing import Optional

from config import EMPTY_GEOMETRY

Coord = tuple[float, float]


def extract_coords_from_geometry(geometry: dict) -> list[Coord]:
    """
    Extract (x, y) coordinate tuples from a linear GeoJSON geometry.

    LineString coordinates are returned as-is. A Polygon contributes its
    exterior ring, which is how closed area ways are stored.

    Args:
        geometry: GeoJSON geometry dict

    Returns:
        List of (x, y) tuples

    Raises:
        ValueError: If the geometry type has no single coordinate sequence
    """
    geom_type = geometry.get("type", "")
    if geom_type == "LineString":
        points = geometry.get("coordinates", [])
    elif geom_type == "Polygon":
        rings = geometry.get("coordinates", [])
        points = rings[0] if rings else []
    else:
        raise ValueError(f"Cannot extract a coordinate sequence from {geom_type or 'untyped'} geometry")
    return [(float(pt[0]), float(pt[1])) for pt in points]


def ring_to_geojson(ring: list[Coord]) -> list[list[float]]:
    """Convert a ring of tuples to GeoJSON [x, y] pairs."""
    return [[x, y] for x, y in ring]


def empty_geometry() -> dict:
    """Return a fresh empty geometry (empty GeometryCollection)."""
    return copy.deepcopy(EMPTY_GEOMETRY)


def is_empty_geometry(geometry: Optional[dict]) -> bool:
    """True for None and for geometries without any coordinates."""
    if not geometry:
        return True
    if geometry.get("type") == "GeometryCollection":
        return not geometry.get("geometries")
    return not geometry.get("coordinates")


def make_polygon_or_multi(polygons: list[list[list[Coord]]]) -> dict:
    """
    Construct a GeoJSON Polygon or MultiPolygon geometry.

    Args:
        polygons: List of polygons, each polygon being [exterior, hole1, hole2, ...]

    Returns:
        GeoJSON geometry dict: empty GeometryCollection for no polygons,
        Polygon for exactly one, MultiPolygon otherwise
    """
    if not polygons:
        return empty_geometry()
    rendered = [[ring_to_geojson(ring) for ring in polygon] for polygon in polygons]
    if len(rendered) == 1:
        return {"type": "Polygon", "coordinates": rendered[0]}
    return {"type": "MultiPolygon", "coordinates": rendered}


def make_point(lon: float, lat: float) -> dict:
    """Construct a GeoJSON Point."""
    return {"type": "Point", "coordinates": [float(lon), float(lat)]}


def make_line_or_area(coords: list[Coord], is_area: bool) -> Optional[dict]:
    """
    Construct a way geometry from ordered coordinates.

    Closed ways flagged as areas become Polygons, everything else a
    LineString. Fewer than 2 coordinates yields None.
    """
    if len(coords) < 2:
        return None
    if is_area and len(coords) >= 4 and coords[0] == coords[-1]:
        return {"type": "Polygon", "coordinates": [ring_to_geojson(coords)]}
    return {"type": "LineString", "coordinates": ring_to_geojson(coords)}
