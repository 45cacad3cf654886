"""
Multi-core parallel mapping for CPU-bound per-group work.

Relation reconstruction is pure Python and holds the GIL, so unlike
numpy-style chunking this fans work out to worker processes. Each item
is processed independently and results come back in input order, so
the output is identical for any worker count.

Usage:
    from services.utils.parallel import parallel_map

    geometries = parallel_map(reconstruct_one, groups, workers=4)
"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor
from typing import Callable, Iterable, Optional, TypeVar

from config import DEFAULT_WORKERS

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def parallel_map(
    func: Callable[[T], R],
    items: Iterable[T],
    workers: Optional[int] = None,
    chunksize: Optional[int] = None,
) -> list[R]:
    """
    Apply ``func`` to every item, in parallel worker processes when worthwhile.

    ``func`` must be a module-level function so it can be pickled.

    Args:
        func: Function applied to each item
        items: Work items
        workers: Number of processes (default: CPU count, capped at 8)
        chunksize: Items sent to a worker per task (default: spread over ~4 tasks per worker)

    Returns:
        Results in the same order as ``items``.
    """
    items = list(items)

    if workers is None:
        workers = DEFAULT_WORKERS

    # For little work or a single worker, stay in-process
    if workers <= 1 or len(items) < workers * 4:
        return [func(item) for item in items]

    if chunksize is None:
        chunksize = max(1, len(items) // (workers * 4))

    logger.debug(f"Mapping {len(items)} items over {workers} processes (chunksize={chunksize})")
    with ProcessPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(func, items, chunksize=chunksize))
