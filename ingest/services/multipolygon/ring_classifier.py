"""Role voting, canonical winding and duplicate removal for assembled rings."""

import logging
from collections import Counter
from typing import Iterable, Optional

from config import INNER_ROLE, MIN_RING_COORDS, OUTER_ROLE
from services.multipolygon.types import AssembledRing, ClassifiedRing, ReconstructionReport
from services.utils.geo import coord_key, distinct_vertex_count, orient_ring, rotate_to_min_vertex, signed_area

logger = logging.getLogger(__name__)


def vote_role(roles: Iterable[str]) -> str:
    """
    Majority role over a ring's segments.

    A tie goes to outer so that area is never lost to mis-tagged members.
    """
    counts = Counter(roles)
    if counts[INNER_ROLE] > counts[OUTER_ROLE]:
        return INNER_ROLE
    return OUTER_ROLE


def classify_ring(ring: AssembledRing) -> Optional[ClassifiedRing]:
    """
    Assign role and canonical orientation to one ring.

    Outer rings are wound counter-clockwise, inner rings clockwise, and
    every ring starts at its smallest vertex.

    Returns:
        ClassifiedRing, or None when the ring is degenerate
        (too few vertices or zero area)
    """
    coords = ring.coords
    if len(coords) < MIN_RING_COORDS or distinct_vertex_count(coords) < 3:
        return None

    area = signed_area(coords)
    if area == 0:
        return None

    role = vote_role(ring.roles)
    oriented = orient_ring(coords, ccw=(role == OUTER_ROLE))
    canonical = rotate_to_min_vertex(oriented)
    return ClassifiedRing(coords=canonical, role=role, area=signed_area(canonical))


def classify_rings(
    rings: Iterable[AssembledRing],
    report: Optional[ReconstructionReport] = None,
) -> list[ClassifiedRing]:
    """Classify every ring, dropping degenerate ones."""
    classified = []
    for ring in rings:
        result = classify_ring(ring)
        if result is None:
            logger.debug(f"Dropping degenerate ring with {len(ring.coords)} coordinates")
            if report is not None:
                report.degenerate_rings += 1
            continue
        classified.append(result)
    return classified


def drop_duplicate_rings(
    rings: Iterable[ClassifiedRing],
    report: Optional[ReconstructionReport] = None,
) -> list[ClassifiedRing]:
    """
    Keep one ring per distinct boundary.

    A closed way listed next to the open ways tracing the same outline
    assembles into the same ring twice. Classified rings are already in
    canonical winding and start vertex, so equal boundaries have equal
    rounded coordinates.
    """
    seen: set[tuple] = set()
    unique = []
    for ring in rings:
        key = (ring.role, tuple(coord_key(c) for c in ring.coords))
        if key in seen:
            logger.debug(f"Dropping duplicate {ring.role} ring starting at {ring.coords[0]}")
            if report is not None:
                report.duplicate_rings += 1
            continue
        seen.add(key)
        unique.append(ring)
    return unique
