"""
Metric registry using prometheus_client.

Provides the monitor's metrics on a registry owned by one MonitorMetrics
instance. Exposes them in Prometheus text format via the /metrics endpoint.
"""

from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

CHECK_DURATION_BUCKETS = (0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)
"""Histogram buckets for cycle duration, in seconds. Cycles are RPC-bound."""


class MonitorMetrics:
    """
    Metrics published by the node monitor.

    Every instance gets its own registry, so several monitors (or tests) in
    one process never share state.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """
        Create the metrics on `registry`, or on a fresh dedicated registry.

        A dedicated registry avoids pollution from default Python process metrics.
        """
        self.registry = registry if registry is not None else CollectorRegistry()

        # ---------------------------------------------------------------------
        # Chain Agreement
        # ---------------------------------------------------------------------

        self.chain_split = Gauge(
            "chain_split",
            "Largest split length between any two nodes in the last check",
            registry=self.registry,
        )

        self.nodes_reachable = Gauge(
            "nodes_reachable",
            "Nodes that answered the last poll",
            registry=self.registry,
        )

        # ---------------------------------------------------------------------
        # Check Cycles
        # ---------------------------------------------------------------------

        self.checks = Counter(
            "checks_total",
            "Completed check cycles",
            registry=self.registry,
        )

        self.check_duration = Histogram(
            "check_duration_seconds",
            "Check cycle duration",
            buckets=CHECK_DURATION_BUCKETS,
            registry=self.registry,
        )

    def record_check(self, split_size: int, reachable: int, duration: float) -> None:
        """Publish the outcome of one completed cycle."""
        self.chain_split.set(split_size)
        self.nodes_reachable.set(reachable)
        self.checks.inc()
        self.check_duration.observe(duration)

    def generate(self) -> bytes:
        """
        Generate Prometheus metrics output.

        Returns:
            Prometheus text format output as bytes.
        """
        return generate_latest(self.registry)
