"""
Planar ring utilities.

Shared helpers for endpoint keys, signed area, winding and canonical
start vertices used by multipolygon assembly.
"""

from __future__ import annotations

import numpy as np

from config import COORDINATE_PRECISION

Coord = tuple[float, float]


def coord_key(coord: Coord, precision: int = COORDINATE_PRECISION) -> Coord:
    """Rounded coordinate used to match way endpoints."""
    return (round(coord[0], precision), round(coord[1], precision))


def signed_area(ring: list[Coord]) -> float:
    """
    Signed area of a ring via the shoelace formula.

    Positive for counter-clockwise rings, negative for clockwise.
    Works on closed or open rings (the closing edge is implied).
    """
    if len(ring) < 3:
        return 0.0
    pts = np.asarray(ring, dtype=np.float64)
    x = pts[:, 0]
    y = pts[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))


def distinct_vertex_count(ring: list[Coord]) -> int:
    """Number of distinct vertices (closing vertex not counted twice)."""
    return len({coord_key(c) for c in ring})


def rotate_to_min_vertex(ring: list[Coord]) -> list[Coord]:
    """
    Rotate a closed ring so it starts (and ends) at its smallest vertex.

    Gives every ring a canonical starting point, so the same boundary
    always serializes the same way regardless of how it was assembled.
    """
    open_ring = ring[:-1] if len(ring) > 1 and ring[0] == ring[-1] else list(ring)
    if not open_ring:
        return list(ring)
    start = open_ring.index(min(open_ring))
    rotated = open_ring[start:] + open_ring[:start]
    rotated.append(rotated[0])
    return rotated


def orient_ring(ring: list[Coord], ccw: bool) -> list[Coord]:
    """Return the ring wound counter-clockwise (ccw=True) or clockwise."""
    area = signed_area(ring)
    if (area > 0) != ccw:
        return list(reversed(ring))
    return list(ring)
