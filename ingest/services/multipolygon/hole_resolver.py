"""
Hole assignment for multipolygon relations.

Each inner ring goes to the smallest outer ring that encloses it, which
is the right answer for nested structures such as an island in a lake
in an island.

Enclosure is tested on the whole inner ring first (so an island sitting
inside a lake never claims the lake). Inner rings that no outer ring
fully covers, typically slightly malformed ones crossing their outer
boundary, fall back to a point-in-polygon test on a representative point.
"""

import logging
from typing import Optional

import numpy as np
from shapely.errors import GEOSException
from shapely.geometry import Point, Polygon
from shapely.prepared import prep

from services.multipolygon.types import ClassifiedRing, ReconstructionReport

logger = logging.getLogger(__name__)


def _interior_point(polygon: Polygon, ring: ClassifiedRing) -> Point:
    """Point inside the ring; falls back to the vertex mean for invalid rings."""
    try:
        point = polygon.representative_point()
        if not point.is_empty:
            return point
    except GEOSException:
        pass
    mean = np.asarray(ring.coords[:-1], dtype=np.float64).mean(axis=0)
    return Point(float(mean[0]), float(mean[1]))


def _smallest(outers: list[ClassifiedRing], candidates: list[int]) -> Optional[int]:
    # min() keeps the first index on equal areas
    if not candidates:
        return None
    return min(candidates, key=lambda i: abs(outers[i].area))


def _matching(prepared: list, predicate: str, target) -> list[int]:
    matches = []
    for i, outer in enumerate(prepared):
        try:
            if getattr(outer, predicate)(target):
                matches.append(i)
        except GEOSException:
            continue
    return matches


def resolve_holes(
    outers: list[ClassifiedRing],
    inners: list[ClassifiedRing],
    report: Optional[ReconstructionReport] = None,
) -> dict[int, list[ClassifiedRing]]:
    """
    Assign inner rings to their enclosing outer rings.

    Args:
        outers: Outer rings
        inners: Inner rings
        report: Optional report receiving the unassigned hole count

    Returns:
        Mapping from index into ``outers`` to the holes assigned to it.
        Inner rings no outer ring contains are left out.
    """
    holes: dict[int, list[ClassifiedRing]] = {i: [] for i in range(len(outers))}
    prepared = [prep(Polygon(outer.coords)) for outer in outers]

    for inner in inners:
        polygon = Polygon(inner.coords)

        best_idx = _smallest(outers, _matching(prepared, "covers", polygon))
        if best_idx is None:
            point = _interior_point(polygon, inner)
            best_idx = _smallest(outers, _matching(prepared, "contains", point))

        if best_idx is None:
            logger.debug(f"Dropping inner ring starting at {inner.coords[0]}: no enclosing outer ring")
            if report is not None:
                report.unassigned_holes += 1
            continue

        holes[best_idx].append(inner)

    return holes
