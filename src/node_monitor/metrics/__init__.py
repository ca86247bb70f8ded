"""
Metrics module for observability.

Provides gauges, counters and a histogram tracking chain agreement and check
cycles. Exposes metrics in Prometheus text format.
"""

from .registry import CHECK_DURATION_BUCKETS, MonitorMetrics

__all__ = [
    "CHECK_DURATION_BUCKETS",
    "MonitorMetrics",
]
