"""
Geometry construction for OSM history rows.

Builds versioned geometries stage by stage:
1. Prepared nodes (node versions with deleted coordinates blanked)
2. Point geometries for tagged nodes
3. Way geometries, resolving each node ref as of the way's timestamp
4. Relation member rows, resolving each member as of the relation's timestamp
5. Relation geometries via grouped multipolygon reconstruction

Each step takes and returns pandas DataFrames so it can be cached
independently by the stage cache.
"""

import logging
from typing import Optional

import numpy as np
import pandas as pd

from config import AREA_KEYS, AREA_TAG_EXCEPTIONS, RELATION_TYPES
from services.aggregation import KEY_COLUMNS, aggregate_relation_geometries
from services.utils.geojson import empty_geometry, make_line_or_area, make_point

logger = logging.getLogger(__name__)

NODE_COLUMNS = ["id", "version", "changeset", "timestamp", "visible", "tags", "lat", "lon"]
GEOMETRY_COLUMNS = ["id", "type", "changeset", "version", "minor_version", "timestamp", "tags", "geom"]
MEMBER_COLUMNS = KEY_COLUMNS + ["type", "ref", "member_version", "role", "geom"]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _visible_mask(df: pd.DataFrame) -> pd.Series:
    if "visible" not in df.columns:
        return pd.Series(True, index=df.index)
    return df["visible"].fillna(True).astype(bool)


def _elements(df: pd.DataFrame, element_type: str) -> pd.DataFrame:
    return df[df["type"] == element_type]


def is_area(tags: dict) -> bool:
    """
    Decide whether a closed way describes an area.

    An explicit area=yes/no wins; otherwise any area key whose value
    isn't a known linear exception makes it an area.
    """
    area = tags.get("area")
    if area == "no":
        return False
    if area is not None:
        return True

    for key, value in tags.items():
        if key not in AREA_KEYS or value == "no":
            continue
        if value in AREA_TAG_EXCEPTIONS.get(key, ()):
            continue
        return True
    return False


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------

def preprocess_nodes(df: pd.DataFrame) -> pd.DataFrame:
    """
    Extract node versions from history rows.

    Deleted node versions are kept (they end a node's validity) but
    their coordinates are blanked.

    Args:
        df: OSM history rows

    Returns:
        Node rows sorted by (id, version)
    """
    nodes = _elements(df, "node").copy()
    nodes["visible"] = _visible_mask(nodes)
    nodes = nodes[NODE_COLUMNS].copy()
    nodes.loc[~nodes["visible"], ["lat", "lon"]] = np.nan
    nodes = nodes.sort_values(["id", "version"]).reset_index(drop=True)
    logger.info(f"Prepared {len(nodes)} node versions")
    return nodes


def construct_point_geometries(nodes: pd.DataFrame) -> pd.DataFrame:
    """Point geometries for every visible, tagged node version."""
    mask = (
        nodes["visible"].astype(bool)
        & nodes["tags"].map(bool).astype(bool)
        & nodes["lat"].notna()
        & nodes["lon"].notna()
    )
    usable = nodes[mask]

    points = pd.DataFrame({
        "id": usable["id"],
        "type": "node",
        "changeset": usable["changeset"],
        "version": usable["version"],
        "minor_version": 0,
        "timestamp": usable["timestamp"],
        "tags": usable["tags"],
        "geom": [make_point(lon, lat) for lon, lat in zip(usable["lon"], usable["lat"])],
    }, columns=GEOMETRY_COLUMNS)

    logger.info(f"Constructed {len(points)} point geometries")
    return points.reset_index(drop=True)


# ---------------------------------------------------------------------------
# Ways
# ---------------------------------------------------------------------------

def _resolve_way_coords(ways: pd.DataFrame, nodes: pd.DataFrame) -> dict[int, list[tuple[float, float]]]:
    """Map way row position -> coordinates, resolving node refs as of the way timestamp."""
    refs = ways[["timestamp", "nds"]].copy()
    refs["way_idx"] = np.arange(len(refs))
    refs = refs.explode("nds").rename(columns={"nds": "ref"}).dropna(subset=["ref"])
    if refs.empty or nodes.empty:
        return {}

    refs["ref"] = refs["ref"].astype("int64")
    refs["seq"] = refs.groupby("way_idx").cumcount()

    node_coords = nodes[["id", "version", "timestamp", "lat", "lon"]].rename(
        columns={"id": "ref", "timestamp": "node_timestamp"}
    )
    node_coords["ref"] = node_coords["ref"].astype("int64")

    joined = pd.merge_asof(
        refs.sort_values("timestamp"),
        node_coords.sort_values(["node_timestamp", "version"]),
        left_on="timestamp",
        right_on="node_timestamp",
        by="ref",
        direction="backward",
    )
    joined = joined.dropna(subset=["lat", "lon"]).sort_values(["way_idx", "seq"])

    coords: dict[int, list[tuple[float, float]]] = {}
    for way_idx, group in joined.groupby("way_idx", sort=False):
        coords[int(way_idx)] = [(float(lon), float(lat)) for lon, lat in zip(group["lon"], group["lat"])]
    return coords


def reconstruct_way_geometries(df: pd.DataFrame, nodes: pd.DataFrame) -> pd.DataFrame:
    """
    Build one geometry per way version.

    Node refs resolve to the node version in effect at the way's
    timestamp. Closed area ways become Polygons, others LineStrings;
    deleted ways and ways with fewer than 2 resolvable nodes get a null
    geometry.

    Args:
        df: OSM history rows
        nodes: Output of preprocess_nodes

    Returns:
        Way geometry rows
    """
    ways = _elements(df, "way").reset_index(drop=True)
    if ways.empty:
        return pd.DataFrame(columns=GEOMETRY_COLUMNS)

    visible = _visible_mask(ways)
    coords_by_way = _resolve_way_coords(ways, nodes)

    geoms = []
    for i, (tags, is_visible) in enumerate(zip(ways["tags"], visible)):
        coords = coords_by_way.get(i, [])
        geoms.append(make_line_or_area(coords, is_area(tags)) if is_visible else None)

    result = pd.DataFrame({
        "id": ways["id"],
        "type": "way",
        "changeset": ways["changeset"],
        "version": ways["version"],
        "minor_version": 0,
        "timestamp": ways["timestamp"],
        "tags": ways["tags"],
        "geom": geoms,
    }, columns=GEOMETRY_COLUMNS)

    missing = sum(g is None for g in geoms)
    logger.info(f"Reconstructed {len(result)} way geometries ({missing} without geometry)")
    return result


# ---------------------------------------------------------------------------
# Relations
# ---------------------------------------------------------------------------

def _area_relations(df: pd.DataFrame) -> pd.DataFrame:
    relations = _elements(df, "relation")
    wanted = relations["tags"].map(lambda tags: (tags or {}).get("type") in RELATION_TYPES).astype(bool)
    return relations[wanted].reset_index(drop=True)


def _explode_members(relations: pd.DataFrame) -> pd.DataFrame:
    records = []
    visible = _visible_mask(relations)
    for row, is_visible in zip(relations.itertuples(index=False), visible):
        if not is_visible:
            continue
        for member in row.members:
            records.append({
                "changeset": row.changeset,
                "id": row.id,
                "version": row.version,
                "timestamp": row.timestamp,
                "type": member.get("type"),
                "ref": int(member.get("ref")),
                "role": member.get("role") or "",
            })
    return pd.DataFrame(records, columns=KEY_COLUMNS + ["type", "ref", "role"])


def _resolve_members(members: pd.DataFrame, geoms: Optional[pd.DataFrame]) -> pd.DataFrame:
    """Attach the member version and geometry in effect at each relation timestamp."""
    if members.empty or geoms is None or geoms.empty:
        return pd.DataFrame(columns=MEMBER_COLUMNS)

    lookup = geoms[["id", "version", "timestamp", "geom"]].rename(columns={
        "id": "ref",
        "version": "member_version",
        "timestamp": "member_timestamp",
    })
    lookup["ref"] = lookup["ref"].astype("int64")
    members = members.copy()
    members["ref"] = members["ref"].astype("int64")

    joined = pd.merge_asof(
        members.sort_values("timestamp"),
        lookup.sort_values(["member_timestamp", "member_version"]),
        left_on="timestamp",
        right_on="member_timestamp",
        by="ref",
        direction="backward",
    )
    # Unresolved members (outside the extract, or deleted) are simply absent
    joined = joined[joined["geom"].map(lambda g: isinstance(g, dict))].copy()
    joined["member_version"] = joined["member_version"].astype("int64")
    return joined[MEMBER_COLUMNS]


def gather_relation_members(
    df: pd.DataFrame,
    way_geoms: pd.DataFrame,
    node_geoms: Optional[pd.DataFrame] = None,
) -> pd.DataFrame:
    """
    Build member rows for multipolygon and boundary relations.

    Way and node members are resolved against the geometry versions in
    effect at the relation's timestamp. Nested relation members are
    kept without geometry so reconstruction can account for them.

    Args:
        df: OSM history rows
        way_geoms: Output of reconstruct_way_geometries
        node_geoms: Output of construct_point_geometries (optional)

    Returns:
        Member rows keyed by (changeset, id, version, timestamp)
    """
    members = _explode_members(_area_relations(df))

    way_rows = _resolve_members(members[members["type"] == "way"], way_geoms)
    node_rows = _resolve_members(members[members["type"] == "node"], node_geoms)

    relation_rows = members[members["type"] == "relation"].copy()
    relation_rows["member_version"] = 0
    relation_rows["geom"] = None

    frames = [frame[MEMBER_COLUMNS] for frame in (way_rows, node_rows, relation_rows) if not frame.empty]
    if not frames:
        return pd.DataFrame(columns=MEMBER_COLUMNS)

    gathered = pd.concat(frames, ignore_index=True)
    dropped = len(members) - len(gathered)
    if dropped:
        logger.info(f"{dropped} relation member(s) could not be resolved and were omitted")
    return gathered.sort_values(KEY_COLUMNS + ["type", "ref"]).reset_index(drop=True)


def reconstruct_relation_geometries(
    df: pd.DataFrame,
    way_geoms: pd.DataFrame,
    node_geoms: Optional[pd.DataFrame] = None,
    workers: int = 1,
) -> pd.DataFrame:
    """
    Reconstruct one geometry per multipolygon / boundary relation version.

    Relation versions whose members all went missing still get a row,
    with the empty geometry.

    Args:
        df: OSM history rows
        way_geoms: Output of reconstruct_way_geometries
        node_geoms: Output of construct_point_geometries (optional)
        workers: Worker processes for reconstruction

    Returns:
        Relation geometry rows
    """
    relations = _area_relations(df)
    if relations.empty:
        return pd.DataFrame(columns=GEOMETRY_COLUMNS)

    members = gather_relation_members(df, way_geoms, node_geoms)
    geoms = aggregate_relation_geometries(members, workers=workers)

    if geoms.empty:
        result = relations[KEY_COLUMNS + ["tags"]].copy()
        result["geom"] = None
    else:
        result = relations[KEY_COLUMNS + ["tags"]].merge(geoms, on=KEY_COLUMNS, how="left")
    result["geom"] = result["geom"].map(lambda g: g if isinstance(g, dict) else empty_geometry())
    result["type"] = "relation"
    result["minor_version"] = 0

    logger.info(f"Reconstructed {len(result)} relation geometries")
    return result[GEOMETRY_COLUMNS].sort_values(["id", "version"]).reset_index(drop=True)
