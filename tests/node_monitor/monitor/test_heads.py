"""Tests for the heads-of-interest aggregator."""

from __future__ import annotations

from node_monitor.monitor import Divergence, HeadAggregator
from node_monitor.types import Uint64


class TestHeadAggregator:
    """Tests for HeadAggregator."""

    def test_deduplicates_and_sorts_descending(self) -> None:
        """Heights are unique and most recent first."""
        heads = HeadAggregator([98, 100])
        heads.add(Uint64(100))
        heads.add(50)

        assert heads.heights() == [100, 98, 50]
        assert len(heads) == 3

    def test_divergence_adds_both_boundaries(self) -> None:
        """A split contributes its first differing and last agreeing heights."""
        heads = HeadAggregator()
        heads.add_divergence(Divergence("a", "b", horizon=100, split_height=50))

        assert 50 in heads
        assert 49 in heads
        assert heads.heights() == [50, 49]

    def test_split_at_genesis_has_no_predecessor(self) -> None:
        """A split at height 0 adds only height 0."""
        heads = HeadAggregator()
        heads.add_divergence(Divergence("a", "b", horizon=10, split_height=0))

        assert heads.heights() == [0]

    def test_heights_are_plain_ints(self) -> None:
        """Report keys do not depend on the integer type that was added."""
        heads = HeadAggregator()
        heads.add(Uint64(7))

        assert type(heads.heights()[0]) is int
