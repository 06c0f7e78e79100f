"""
Bounded-concurrency mapping over a list.

Items are processed in consecutive groups of concurrency_limit; each group
runs concurrently and must finish before the next group starts, so at most
concurrency_limit calls are in flight at any instant. Results come back in
input order, one list per group, folded by the caller's await.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_CONCURRENCY_LIMIT = 5


def chunked(items: Sequence[T], size: int) -> list[Sequence[T]]:
    """Split items into consecutive slices of at most size elements."""
    if size < 1:
        raise ValueError("size must be >= 1")
    return [items[i : i + size] for i in range(0, len(items), size)]


async def map_bounded(
    items: Sequence[T],
    fn: Callable[[T], Awaitable[R]],
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
) -> list[R]:
    """
    Apply fn to every item with at most concurrency_limit calls in flight.

    An exception raised by fn propagates; callers that need per-item
    isolation absorb errors inside fn.
    """
    results: list[R] = []
    for group in chunked(items, concurrency_limit):
        group_results = await asyncio.gather(*(fn(item) for item in group))
        results.extend(group_results)
    return results
