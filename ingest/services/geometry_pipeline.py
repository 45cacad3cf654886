"""
Geometry pipeline orchestrator.

Coordinates the full run from OSM history rows to geometry rows:
1. Prepared nodes
2. Node (point) geometries
3. Way geometries
4. Relation (multipolygon / boundary) geometries
5. Union and partitioned write

Every stage goes through the stage cache, so a rerun with the same
cache location skips stages that were already materialized.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from config import (
    DEFAULT_PARTITIONS, STAGE_NODE_GEOMS, STAGE_PREPARED_NODES,
    STAGE_RELATION_GEOMS, STAGE_WAY_GEOMS,
)
from services.geometry_builder import (
    GEOMETRY_COLUMNS,
    construct_point_geometries,
    preprocess_nodes,
    reconstruct_relation_geometries,
    reconstruct_way_geometries,
)
from services.stage_cache import StageCache, stage_cache_for
from services.storage import read_history, write_geometries

logger = logging.getLogger(__name__)


def build_geometries(df: pd.DataFrame, cache: StageCache, workers: int = 1) -> pd.DataFrame:
    """
    Run all geometry stages over history rows.

    Ways only make it into the output when tagged; untagged ways usually
    exist only to contribute to relations.

    Args:
        df: OSM history rows
        cache: Stage cache wrapping each stage
        workers: Worker processes for relation reconstruction

    Returns:
        Combined node, tagged way and relation geometry rows
    """
    nodes = cache.parquet(STAGE_PREPARED_NODES, lambda: preprocess_nodes(df))
    node_geoms = cache.parquet(STAGE_NODE_GEOMS, lambda: construct_point_geometries(nodes))
    way_geoms = cache.parquet(STAGE_WAY_GEOMS, lambda: reconstruct_way_geometries(df, nodes))
    relation_geoms = cache.parquet(
        STAGE_RELATION_GEOMS,
        lambda: reconstruct_relation_geometries(df, way_geoms, node_geoms, workers=workers),
    )

    tagged_ways = way_geoms[way_geoms["tags"].map(bool).astype(bool)]
    frames = [frame for frame in (node_geoms, tagged_ways, relation_geoms) if not frame.empty]
    if not frames:
        return pd.DataFrame(columns=GEOMETRY_COLUMNS)
    return pd.concat(frames, ignore_index=True)[GEOMETRY_COLUMNS]


def make_geometries(
    input_path: Union[str, Path],
    output_dir: Union[str, Path],
    partitions: int = DEFAULT_PARTITIONS,
    cache_location: Optional[str] = None,
    workers: int = 1,
) -> list[Path]:
    """
    Read history rows, build geometries and write them out.

    Args:
        input_path: Parquet file (or directory) of OSM history rows
        output_dir: Directory receiving part-NNNNN.parquet files
        partitions: Number of output files
        cache_location: Stage cache location ("" / None disables caching)
        workers: Worker processes for relation reconstruction

    Returns:
        Paths of the written partitions
    """
    cache = stage_cache_for(cache_location)
    df = read_history(input_path)
    geometries = build_geometries(df, cache, workers=workers)
    logger.info(f"Built {len(geometries)} geometry rows")
    return write_geometries(geometries, output_dir, partitions)
