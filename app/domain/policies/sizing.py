"""Sizing policies — worker pool width and bulk sub-batch width."""

from __future__ import annotations

from collections.abc import Iterator, Sequence

USERS_PER_WORKER = 20
MIN_WORKERS = 10
MAX_WORKERS = 100

SUB_BATCH_DIVISOR = 10
MIN_SUB_BATCH = 20
MAX_SUB_BATCH = 50


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(value, upper))


def worker_pool_size(expected_concurrent_users: int) -> int:
    """One worker slot per twenty expected users, between 10 and 100.

    >>> worker_pool_size(2000)
    100
    >>> worker_pool_size(50)
    10
    """
    return clamp(expected_concurrent_users // USERS_PER_WORKER, MIN_WORKERS, MAX_WORKERS)


def sub_batch_size(total_cases: int) -> int:
    """Width of one bulk sub-batch: a tenth of the batch, between 20 and 50.

    >>> sub_batch_size(1000)
    50
    >>> sub_batch_size(50)
    20
    """
    return clamp(total_cases // SUB_BATCH_DIVISOR, MIN_SUB_BATCH, MAX_SUB_BATCH)


def chunk(items: Sequence[str], size: int) -> Iterator[Sequence[str]]:
    """Yield consecutive slices of *items*, each at most *size* long, in order.

    Raises:
        ValueError: if size is not positive.
    """
    if size <= 0:
        raise ValueError("Chunk size must be positive")
    for start in range(0, len(items), size):
        yield items[start:start + size]
