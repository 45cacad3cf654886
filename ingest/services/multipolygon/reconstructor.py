"""
Relation geometry reconstruction.

Entry point for one relation version: members in, one geometry out.
Pure and side-effect free; degenerate input yields a best-effort
geometry plus a report of what was dropped instead of an exception.
"""

import logging
from typing import Optional, Sequence

from config import OUTER_ROLE
from services.multipolygon.hole_resolver import resolve_holes
from services.multipolygon.member_filter import filter_members
from services.multipolygon.polygon_assembler import assemble_polygons
from services.multipolygon.ring_assembler import assemble_rings
from services.multipolygon.ring_classifier import classify_rings, drop_duplicate_rings
from services.multipolygon.types import Member, ReconstructionReport, RelationVersionGroup
from services.utils.geojson import empty_geometry

logger = logging.getLogger(__name__)


def _reconstruct(members: Sequence[Member], report: ReconstructionReport) -> dict:
    segments = filter_members(members, report)
    if not segments:
        return empty_geometry()

    rings = assemble_rings(segments, report)
    classified = drop_duplicate_rings(classify_rings(rings, report), report)

    outers = [ring for ring in classified if ring.role == OUTER_ROLE]
    inners = [ring for ring in classified if ring.role != OUTER_ROLE]

    holes = resolve_holes(outers, inners, report)
    return assemble_polygons(outers, holes)


def reconstruct_with_report(members: Sequence[Member]) -> tuple[dict, ReconstructionReport]:
    """
    Reconstruct a relation version's geometry and report what was dropped.

    Args:
        members: The relation version's members, in any order, possibly duplicated

    Returns:
        (GeoJSON geometry dict, ReconstructionReport)
    """
    report = ReconstructionReport()
    return _reconstruct(members, report), report


def reconstruct(members: Sequence[Member]) -> dict:
    """
    Reconstruct a relation version's geometry.

    Identical member sets give identical output regardless of order or
    duplication.
    """
    return _reconstruct(members, ReconstructionReport())


def reconstruct_group(
    group: RelationVersionGroup,
    report: Optional[ReconstructionReport] = None,
) -> dict:
    """
    Reconstruct one grouped relation version, logging any drops.

    Args:
        group: The relation version to reconstruct
        report: Optional report receiving the drop counts

    Returns:
        GeoJSON geometry dict
    """
    if report is None:
        report = ReconstructionReport()

    geometry = _reconstruct(group.members, report)
    if report.dropped_anything:
        logger.debug(
            f"Relation {group.relation_id} v{group.version} (changeset {group.changeset}): "
            f"{report.summary()}"
        )
    return geometry
