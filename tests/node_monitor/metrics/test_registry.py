"""Tests for the monitor's Prometheus metrics."""

from __future__ import annotations

import pytest

from node_monitor.metrics import MonitorMetrics


def sample(
    metrics: MonitorMetrics, name: str, labels: dict[str, str] | None = None
) -> float | None:
    """Read one sample value from the metrics' own registry."""
    return metrics.registry.get_sample_value(name, labels)


class TestRecordCheck:
    """Tests for per-cycle updates."""

    def test_gauges_are_overwritten(self) -> None:
        """The split gauge shows the latest cycle, not a running maximum."""
        metrics = MonitorMetrics()

        metrics.record_check(split_size=50, reachable=3, duration=0.2)
        assert sample(metrics, "chain_split") == 50.0
        assert sample(metrics, "nodes_reachable") == 3.0

        metrics.record_check(split_size=0, reachable=2, duration=0.2)
        assert sample(metrics, "chain_split") == 0.0
        assert sample(metrics, "nodes_reachable") == 2.0

    def test_counter_and_histogram(self) -> None:
        """Each cycle increments the counter and observes its duration."""
        metrics = MonitorMetrics()
        metrics.record_check(split_size=0, reachable=1, duration=0.3)
        metrics.record_check(split_size=0, reachable=1, duration=4.0)

        assert sample(metrics, "checks_total") == 2.0
        assert sample(metrics, "check_duration_seconds_count") == 2.0
        assert sample(metrics, "check_duration_seconds_sum") == pytest.approx(4.3)
        assert sample(metrics, "check_duration_seconds_bucket", {"le": "0.5"}) == 1.0
        assert sample(metrics, "check_duration_seconds_bucket", {"le": "5.0"}) == 2.0


class TestIsolation:
    """Tests for per-instance registries."""

    def test_instances_do_not_share_state(self) -> None:
        """Two monitors in one process keep separate metrics."""
        first = MonitorMetrics()
        second = MonitorMetrics()

        first.record_check(split_size=7, reachable=2, duration=0.1)

        assert sample(first, "chain_split") == 7.0
        assert sample(second, "chain_split") == 0.0
        assert sample(second, "checks_total") == 0.0


class TestPrometheusOutput:
    """Tests for Prometheus text format output."""

    def test_generate_returns_exposition(self) -> None:
        """Output is Prometheus text naming every metric."""
        metrics = MonitorMetrics()
        metrics.record_check(split_size=3, reachable=2, duration=0.1)

        output = metrics.generate()
        assert isinstance(output, bytes)

        text = output.decode()
        assert "# TYPE chain_split gauge" in text
        assert "chain_split 3.0" in text
        assert "checks_total 1.0" in text
        assert "# TYPE check_duration_seconds histogram" in text
        assert "nodes_reachable 2.0" in text
