"""
Grouped aggregation of relation member rows.

Groups member rows by (changeset, id, version, timestamp) and reduces
each group to one geometry with the multipolygon reconstructor. Groups
are independent, so they can be spread across worker processes; output
is the same for any worker count or row order.
"""

import logging
import math
from collections import Counter
from typing import Any

import pandas as pd

from services.multipolygon import Member, ReconstructionReport, RelationVersionGroup, reconstruct_group
from services.utils.geojson import is_empty_geometry
from services.utils.parallel import parallel_map

logger = logging.getLogger(__name__)

KEY_COLUMNS = ["changeset", "id", "version", "timestamp"]


def _role(value: Any) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value)


def _geometry(value: Any):
    return value if isinstance(value, dict) else None


def group_member_rows(rows: pd.DataFrame) -> list[RelationVersionGroup]:
    """
    Group member rows into relation versions.

    Args:
        rows: Member rows with KEY_COLUMNS plus type, ref, member_version, role, geom

    Returns:
        One RelationVersionGroup per distinct key, in sorted key order
    """
    if rows.empty:
        return []

    groups = []
    for key, frame in rows.groupby(KEY_COLUMNS, sort=True):
        changeset, relation_id, version, timestamp = key
        members = [
            Member(
                id=int(row.ref),
                version=int(row.member_version),
                type=row.type,
                role=_role(row.role),
                geometry=_geometry(row.geom),
            )
            for row in frame.itertuples(index=False)
        ]
        groups.append(RelationVersionGroup(
            relation_id=int(relation_id),
            changeset=int(changeset),
            version=int(version),
            timestamp=timestamp,
            members=members,
        ))
    return groups


def _reconstruct_one(group: RelationVersionGroup) -> tuple[dict, ReconstructionReport]:
    report = ReconstructionReport()
    return reconstruct_group(group, report), report


def aggregate_relation_geometries(rows: pd.DataFrame, workers: int = 1) -> pd.DataFrame:
    """
    Reconstruct one geometry per relation version.

    Dropped rings and holes are logged, never raised: one bad relation
    version does not stop the others.

    Args:
        rows: Member rows (see group_member_rows)
        workers: Worker processes; 1 runs in-process

    Returns:
        DataFrame with KEY_COLUMNS + ["geom"], one row per group
    """
    groups = group_member_rows(rows)
    results = parallel_map(_reconstruct_one, groups, workers=workers)

    totals: Counter = Counter()
    empty = 0
    lossy = 0
    records = []

    for group, (geometry, report) in zip(groups, results):
        if is_empty_geometry(geometry):
            empty += 1
        if report.dropped_anything:
            lossy += 1
            totals.update(report.to_dict())
        records.append({
            "changeset": group.changeset,
            "id": group.relation_id,
            "version": group.version,
            "timestamp": group.timestamp,
            "geom": geometry,
        })

    logger.info(
        f"Aggregated {len(groups)} relation versions: {empty} empty, "
        f"{lossy} with dropped data"
    )
    if lossy:
        dropped = ", ".join(f"{name}={count}" for name, count in sorted(totals.items()) if count)
        logger.info(f"Dropped across all relation versions: {dropped}")

    return pd.DataFrame(records, columns=KEY_COLUMNS + ["geom"])
