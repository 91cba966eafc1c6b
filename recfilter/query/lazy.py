"""
Lazy evaluation helpers.

All helpers consume their source one record at a time and stop pulling as
soon as the answer is known, so they work on unbounded iterables.
"""

from __future__ import annotations

from itertools import islice
from typing import Any, AsyncIterable, AsyncIterator, Callable, Iterable, Iterator, List, Optional, TypeVar

T = TypeVar("T")

Predicate = Callable[[Any], bool]


def iter_matches(data: Iterable[T], predicate: Predicate, limit: Optional[int] = None) -> Iterator[T]:
    """
    Yield records satisfying ``predicate`` in source order.

    Args:
        data: Source records
        predicate: Match test
        limit: Stop after this many matches
    """
    matches = (record for record in data if predicate(record))
    if limit is None:
        return matches
    return islice(matches, limit)


async def aiter_matches(
    data: AsyncIterable[T], predicate: Predicate, limit: Optional[int] = None
) -> AsyncIterator[T]:
    """Async counterpart of ``iter_matches`` for ``async for`` sources."""
    found = 0
    async for record in data:
        if predicate(record):
            yield record
            found += 1
            if limit is not None and found >= limit:
                return


def take(iterator: Iterable[T], n: int) -> List[T]:
    """First ``n`` items of an iterator."""
    return list(islice(iterator, n))


def first_match(data: Iterable[T], predicate: Predicate) -> bool:
    return any(predicate(record) for record in data)


def count_matches(data: Iterable[Any], predicate: Predicate) -> int:
    """Count matches without materializing them."""
    return sum(1 for record in data if predicate(record))


def chunked(iterable: Iterable[T], size: int) -> Iterator[List[T]]:
    """
    Group an iterable into lists of ``size`` items; the last may be shorter.

    Example:
        >>> list(chunked(range(5), 2))
        [[0, 1], [2, 3], [4]]
    """
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    iterator = iter(iterable)
    while True:
        chunk = list(islice(iterator, size))
        if not chunk:
            return
        yield chunk
