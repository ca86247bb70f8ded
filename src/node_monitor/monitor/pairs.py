"""Unordered pair enumeration over the active node set."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import TypeVar

T = TypeVar("T")


def for_pairs(items: Sequence[T]) -> Iterator[tuple[T, T]]:
    """
    Yield every unordered pair `(items[i], items[j])` with `i < j` exactly once.

    n items give n(n-1)/2 pairs. Fewer than two items give none.
    """
    for i, first in enumerate(items):
        for second in items[i + 1 :]:
            yield first, second
