"""
Columnar storage for OSM history and geometry rows.

Reads and writes Parquet through pandas/pyarrow. Nested columns
(tags, members) are stored as JSON text and geometries as WKB, so
frames round-trip without depending on pyarrow's nested type inference.
"""

import json
import logging
import math
from pathlib import Path
from typing import Any, Optional, Union

import numpy as np
import pandas as pd
from shapely import wkb
from shapely.geometry import mapping, shape

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

JSON_COLUMNS = ("tags", "members")
GEOMETRY_COLUMN = "geom"


# ---------------------------------------------------------------------------
# Value decoding
# ---------------------------------------------------------------------------

def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def decode_tags(value: Any) -> dict:
    """
    Normalize a tags value to a dict.

    Accepts JSON text, dicts, and the list of (key, value) pairs pyarrow
    produces for map columns.
    """
    if _is_missing(value):
        return {}
    if isinstance(value, str):
        return json.loads(value) if value else {}
    if isinstance(value, dict):
        return dict(value)
    return {k: v for k, v in value}


def decode_members(value: Any) -> list[dict]:
    """Normalize a members value to a list of {type, ref, role} dicts."""
    if _is_missing(value):
        return []
    if isinstance(value, str):
        return json.loads(value) if value else []
    return [dict(member) for member in value]


def decode_refs(value: Any) -> list[int]:
    """Normalize a node refs value (list, ndarray, JSON text) to a list of ints."""
    if _is_missing(value):
        return []
    if isinstance(value, str):
        value = json.loads(value) if value else []
    return [int(ref) for ref in value]


def _json_default(value: Any) -> Any:
    # numpy scalars sneak in from pandas columns
    if isinstance(value, np.generic):
        return value.item()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _listify(value: Any) -> Any:
    if isinstance(value, (tuple, list)):
        return [_listify(v) for v in value]
    if isinstance(value, dict):
        return {k: _listify(v) for k, v in value.items()}
    return value


def geometry_to_wkb(geometry: Optional[dict]) -> Optional[bytes]:
    """GeoJSON dict -> WKB bytes (None stays None)."""
    if geometry is None:
        return None
    return shape(geometry).wkb


def geometry_from_wkb(data: Optional[bytes]) -> Optional[dict]:
    """WKB bytes -> GeoJSON dict with list coordinates (None stays None)."""
    if data is None or (isinstance(data, float) and math.isnan(data)):
        return None
    return _listify(mapping(wkb.loads(bytes(data))))


# ---------------------------------------------------------------------------
# Frame encoding
# ---------------------------------------------------------------------------

def encode_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Prepare a frame for Parquet: JSON for nested columns, WKB for geometry."""
    out = df.copy()
    for column in JSON_COLUMNS:
        if column in out.columns:
            out[column] = out[column].map(
                lambda v: None if v is None else json.dumps(v, sort_keys=True, default=_json_default)
            )
    if "nds" in out.columns:
        out["nds"] = out["nds"].map(lambda v: None if v is None else [int(r) for r in v])
    if GEOMETRY_COLUMN in out.columns:
        out[GEOMETRY_COLUMN] = out[GEOMETRY_COLUMN].map(geometry_to_wkb)
    return out


def decode_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Reverse of encode_frame, also normalizing raw OSM history columns."""
    out = df.copy()
    if "tags" in out.columns:
        out["tags"] = out["tags"].map(decode_tags)
    if "members" in out.columns:
        out["members"] = out["members"].map(decode_members)
    if "nds" in out.columns:
        out["nds"] = out["nds"].map(decode_refs)
    if "timestamp" in out.columns:
        out["timestamp"] = pd.to_datetime(out["timestamp"])
    if GEOMETRY_COLUMN in out.columns:
        out[GEOMETRY_COLUMN] = out[GEOMETRY_COLUMN].map(geometry_from_wkb)
    return out


# ---------------------------------------------------------------------------
# Reading and writing
# ---------------------------------------------------------------------------

def read_history(path: PathLike) -> pd.DataFrame:
    """
    Read OSM history rows (nodes, ways, relations) from Parquet.

    Args:
        path: Parquet file or directory of Parquet files

    Returns:
        DataFrame with decoded tags / nds / members and datetime timestamps
    """
    df = pd.read_parquet(path, engine="pyarrow")
    if "visible" not in df.columns:
        df["visible"] = True
    logger.info(f"Read {len(df)} history rows from {path}")
    return decode_frame(df)


def write_frame(df: pd.DataFrame, path: PathLike) -> Path:
    """Write a single frame to one Parquet file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    encode_frame(df).to_parquet(path, engine="pyarrow", index=False)
    return path


def read_frame(path: PathLike) -> pd.DataFrame:
    """Read a frame written by write_frame."""
    return decode_frame(pd.read_parquet(path, engine="pyarrow"))


def write_geometries(df: pd.DataFrame, out_dir: PathLike, partitions: int = 1) -> list[Path]:
    """
    Write geometry rows as ``part-NNNNN.parquet`` files.

    Args:
        df: Geometry rows
        out_dir: Output directory (created if missing)
        partitions: Number of files to split rows across

    Returns:
        Paths of the written files
    """
    if partitions < 1:
        raise ValueError(f"partitions must be at least 1, got {partitions}")

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    encoded = encode_frame(df.reset_index(drop=True))
    paths = []
    for i, indices in enumerate(np.array_split(np.arange(len(encoded)), partitions)):
        path = out_dir / f"part-{i:05d}.parquet"
        encoded.iloc[indices].to_parquet(path, engine="pyarrow", index=False)
        paths.append(path)

    logger.info(f"Wrote {len(df)} geometry rows to {out_dir} in {partitions} partition(s)")
    return paths


def read_geometries(out_dir: PathLike) -> pd.DataFrame:
    """Read every partition written by write_geometries, in partition order."""
    paths = sorted(Path(out_dir).glob("part-*.parquet"))
    if not paths:
        return pd.DataFrame()
    frames = [pd.read_parquet(p, engine="pyarrow") for p in paths]
    return decode_frame(pd.concat(frames, ignore_index=True))
