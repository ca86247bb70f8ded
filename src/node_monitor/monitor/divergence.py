"""
Divergence detection.

The Split Problem
-----------------
Two nodes that follow different chains still agree on everything below the
fork point. Their hash sequences look like:

    height:  0  1  2 ... k-1 | k  k+1 ... horizon
    agree:   =  =  =  ...  = | ≠   ≠  ...    ≠

Finding `k` does not need a walk down from the head. Agreement is monotone
(once two chains differ they never re-converge at a height), so a binary
search over `[0, horizon)` finds it in O(log horizon) hash lookups per node.

Monotonicity is an assumption about real chains, not something a node
promises. A node that answers inconsistently between calls can make the
search land on the wrong height. The boundary is therefore re-read with the
cache bypassed and any inconsistency is logged.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .pairs import for_pairs

if TYPE_CHECKING:
    from node_monitor.nodes import Node

    from .heads import HeadAggregator

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Divergence:
    """A disagreement between two nodes, localized to its first height."""

    node_a: str
    """Name of the first node of the pair."""

    node_b: str
    """Name of the second node of the pair."""

    horizon: int
    """Lower of the two heads: the highest height both nodes can answer for."""

    split_height: int
    """First height at which the two nodes report different hashes."""

    @property
    def split_length(self) -> int:
        """Number of heights below the horizon that the pair disagrees on."""
        return self.horizon - self.split_height


async def _differs(a: Node, b: Node, height: int, force: bool = False) -> bool:
    """Check whether the nodes report different hashes at `height`."""
    return await a.hash_at(height, force) != await b.hash_at(height, force)


async def find_split(horizon: int, a: Node, b: Node) -> int:
    """
    Return the smallest height in `[0, horizon)` where the nodes disagree.

    Returns `horizon` when they agree on the whole range, and 0 without any
    lookups when `horizon` is 0.

    A height one node cannot answer for compares as a difference unless the
    other node cannot answer either.
    """
    low, high = 0, horizon
    while low < high:
        mid = (low + high) // 2
        if await _differs(a, b, mid):
            high = mid
        else:
            low = mid + 1
    return low


def max_split_length(divergences: Iterable[Divergence]) -> int:
    """Return the largest split length, or 0 when there are no divergences."""
    return max((d.split_length for d in divergences), default=0)


@dataclass(slots=True)
class DivergenceFinder:
    """Compares every pair of active nodes and localizes their splits."""

    verify_boundaries: bool = True
    """Re-read the split boundary with caches bypassed after each search."""

    async def compare(self, a: Node, b: Node) -> Divergence | None:
        """
        Compare two nodes at their common horizon.

        Returns None when the nodes agree at the horizon, or when either one
        has no block there. The latter is logged and the pair is simply
        skipped for this cycle.
        """
        horizon = int(min(a.head_num(), b.head_num()))

        block_a = await a.block_at(horizon)
        if block_a is None:
            logger.warning(
                "%s has no block at %d, skipping comparison with %s", a.name(), horizon, b.name()
            )
            return None
        block_b = await b.block_at(horizon)
        if block_b is None:
            logger.warning(
                "%s has no block at %d, skipping comparison with %s", b.name(), horizon, a.name()
            )
            return None

        if block_a.hash == block_b.hash:
            return None

        split = await find_split(horizon, a, b)
        if self.verify_boundaries:
            await self._verify_boundary(a, b, split)

        divergence = Divergence(
            node_a=a.name(), node_b=b.name(), horizon=horizon, split_height=split
        )
        logger.info(
            "Chain split between %s and %s at %d (horizon %d, length %d)",
            divergence.node_a,
            divergence.node_b,
            split,
            horizon,
            divergence.split_length,
        )
        return divergence

    async def _verify_boundary(self, a: Node, b: Node, split: int) -> None:
        """Log a warning when fresh lookups contradict the found boundary."""
        disagrees = await _differs(a, b, split, force=True)
        agrees_below = split == 0 or not await _differs(a, b, split - 1, force=True)
        if not (disagrees and agrees_below):
            logger.warning(
                "Inconsistent answers from %s and %s around height %d, split may be misplaced",
                a.name(),
                b.name(),
                split,
            )

    async def run(self, nodes: Sequence[Node], heads: HeadAggregator) -> list[Divergence]:
        """
        Compare every unordered pair of `nodes`.

        Split boundaries are added to `heads`. Returns all divergences found.
        """
        divergences: list[Divergence] = []
        for a, b in for_pairs(nodes):
            divergence = await self.compare(a, b)
            if divergence is None:
                continue
            heads.add_divergence(divergence)
            divergences.append(divergence)
        return divergences
