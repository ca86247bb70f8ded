"""
Heads of interest.

Every cycle collects the heights worth showing: each active node's head, and
both sides of every split boundary. The same height is often contributed by
several nodes or pairs, so they are kept as a set.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .divergence import Divergence


class HeadAggregator:
    """Deduplicating accumulator of heights, rebuilt every cycle."""

    __slots__ = ("_heights",)

    def __init__(self, heights: Iterable[int] = ()) -> None:
        self._heights: set[int] = {int(h) for h in heights}

    def add(self, height: int) -> None:
        """Record a height."""
        self._heights.add(int(height))

    def add_divergence(self, divergence: Divergence) -> None:
        """
        Record the heights bracketing a split.

        The first disagreeing height is always added. The last agreeing one
        only exists when the split is above genesis.
        """
        self.add(divergence.split_height)
        if divergence.split_height > 0:
            self.add(divergence.split_height - 1)

    def heights(self) -> list[int]:
        """Return the heights, most recent first."""
        return sorted(self._heights, reverse=True)

    def __contains__(self, height: object) -> bool:
        return height in self._heights

    def __len__(self) -> int:
        return len(self._heights)
