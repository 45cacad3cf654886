"""
Member selection for multipolygon assembly.

Keeps only way members that contribute boundary geometry, collapses
duplicate (id, version) entries, and turns the survivors into segments.
"""

import json
import logging
from typing import Iterable, Optional

from config import AREA_ROLES, INFORMATIONAL_ROLES, OUTER_ROLE
from services.multipolygon.types import (
    MEMBER_TYPES, NODE, RELATION, WAY,
    Member, MissingGeometryError, ReconstructionError, ReconstructionReport, Segment,
)
from services.utils.geojson import extract_coords_from_geometry

logger = logging.getLogger(__name__)


def normalize_role(role: Optional[str]) -> str:
    """Strip whitespace; an untagged role defaults to outer."""
    role = (role or "").strip()
    return role or OUTER_ROLE


def _member_sort_key(member: Member) -> tuple:
    # Geometry is part of the key so the kept duplicate never depends on input order
    geometry = json.dumps(member.geometry, sort_keys=True) if member.geometry is not None else ""
    return (member.id, member.version, member.type, normalize_role(member.role), geometry)


def _drop_repeated_coords(coords: list) -> list:
    """Remove consecutive repeated vertices."""
    cleaned = []
    for coord in coords:
        if not cleaned or cleaned[-1] != coord:
            cleaned.append(coord)
    return cleaned


def filter_members(
    members: Iterable[Member],
    report: Optional[ReconstructionReport] = None,
) -> list[Segment]:
    """
    Select the deduplicated way segments eligible for ring assembly.

    Node members and nested relation members never contribute boundary
    geometry and are skipped. Roles other than outer, inner or empty
    (admin_centre, label, subarea, ...) are skipped as well.

    Args:
        members: Relation members, in any order
        report: Optional report receiving drop counts

    Returns:
        List of segments, one per distinct (id, version) way member

    Raises:
        MissingGeometryError: If an area way member has no geometry
        ReconstructionError: On unknown member types or unusable geometry types
    """
    if report is None:
        report = ReconstructionReport()

    seen: set[tuple[int, int]] = set()
    segments = []

    for member in sorted(members, key=_member_sort_key):
        if member.type not in MEMBER_TYPES:
            raise ReconstructionError(f"Unknown member type {member.type!r} for member {member.id}")

        if member.type == NODE:
            report.node_members += 1
            continue

        if member.type == RELATION:
            report.relation_members += 1
            logger.debug(f"Skipping nested relation member {member.id} v{member.version}")
            continue

        raw_role = (member.role or "").strip()
        if raw_role not in AREA_ROLES:
            report.informational_members += 1
            if raw_role not in INFORMATIONAL_ROLES:
                logger.debug(f"Skipping way {member.id} with unrecognized role {raw_role!r}")
            continue

        key = (member.id, member.version)
        if key in seen:
            report.duplicate_members += 1
            continue
        seen.add(key)

        if member.geometry is None:
            raise MissingGeometryError(f"Way member {member.id} v{member.version} has no geometry")

        try:
            coords = extract_coords_from_geometry(member.geometry)
        except ValueError as e:
            raise ReconstructionError(f"Way member {member.id} v{member.version}: {e}") from e

        coords = _drop_repeated_coords(coords)
        if len(coords) < 2:
            report.malformed_segments += 1
            logger.debug(f"Way {member.id} v{member.version} has fewer than 2 distinct points, skipping")
            continue

        segments.append(Segment(
            member_id=member.id,
            member_version=member.version,
            role=normalize_role(raw_role),
            coords=tuple(coords),
        ))

    return segments
