"""
Stage caching for the geometry pipeline.

Wraps expensive intermediate stages (prepared nodes, node / way /
relation geometries) so that a rerun with the same cache location loads
the materialized result instead of recomputing it:

    cache = stage_cache_for("/tmp/cache")
    nodes = cache.parquet("prepared_nodes", lambda: preprocess_nodes(df))
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Union
from urllib.parse import urlparse

import pandas as pd

from services.storage import read_frame, write_frame

logger = logging.getLogger(__name__)


class StageCache:
    """Base class: load a named stage or compute and persist it."""

    def parquet(self, name: str, compute: Callable[[], pd.DataFrame]) -> pd.DataFrame:
        raise NotImplementedError


class NoCache(StageCache):
    """Always computes; nothing is persisted."""

    def parquet(self, name: str, compute: Callable[[], pd.DataFrame]) -> pd.DataFrame:
        return compute()


class FilesystemCache(StageCache):
    """Caches each stage as ``<root>/<name>.parquet``."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def path_for(self, name: str) -> Path:
        return self.root / f"{name}.parquet"

    def parquet(self, name: str, compute: Callable[[], pd.DataFrame]) -> pd.DataFrame:
        path = self.path_for(name)
        if path.exists():
            logger.info(f"Loading cached stage '{name}' from {path}")
            return read_frame(path)

        result = compute()
        # Rename into place so an interrupted write never leaves a loadable partial stage
        tmp = path.with_name(f".{path.name}.tmp")
        try:
            write_frame(result, tmp)
            tmp.replace(path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        logger.info(f"Cached stage '{name}' ({len(result)} rows) at {path}")
        return result


def stage_cache_for(location: Optional[str]) -> StageCache:
    """
    Pick a cache implementation for a location string.

    Empty / None disables caching. Bare paths and file:// URIs use the
    local filesystem.

    Raises:
        ValueError: For any other scheme (e.g. s3://)
    """
    if not location:
        return NoCache()

    parsed = urlparse(location)
    # bare paths don't get a scheme; single letters are Windows drive names
    if not parsed.scheme or len(parsed.scheme) == 1:
        return FilesystemCache(location)
    if parsed.scheme == "file":
        return FilesystemCache(parsed.path)

    raise ValueError(f"Unsupported cache location scheme '{parsed.scheme}' in {location}")
