"""
Thread-pool fan-out for independent, CPU-light work items.

Compiling one way touches no shared state, so a batch can be spread across
threads without locking. Results come back in input order regardless of
which thread finishes first.

Usage:
    from services.utils.parallel import parallel_map

    results = parallel_map(compile_one, ways, workers=4)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Optional, TypeVar

from config import COMPILE_WORKERS

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

# Below this many items the pool start-up costs more than it saves
_MIN_ITEMS_PER_WORKER = 4


def parallel_map(
    fn: Callable[[T], R],
    items: Iterable[T],
    workers: Optional[int] = None,
) -> list[R]:
    """
    Apply `fn` to every item on a thread pool, preserving input order.

    Args:
        fn: Function applied to each item. Exceptions propagate to the caller.
        items: Work items.
        workers: Number of threads (default: COMPILE_WORKERS).

    Returns:
        List of results, same order as `items`.
    """
    items = list(items)
    if workers is None:
        workers = COMPILE_WORKERS

    # For small batches or a single worker, just run inline
    if workers <= 1 or len(items) < workers * _MIN_ITEMS_PER_WORKER:
        return [fn(item) for item in items]

    logger.debug(f"Fanning out {len(items)} items across {workers} threads")
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(fn, items))
