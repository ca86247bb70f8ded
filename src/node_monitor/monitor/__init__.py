"""
Divergence monitoring.

Polls a fleet of nodes, finds where their chains split, and reports the
heights around each split together with every node's hash there.
"""

from .divergence import Divergence, DivergenceFinder, find_split, max_split_length
from .export import ReportExporter
from .heads import HeadAggregator
from .pairs import for_pairs
from .report import NodeColumn, Report, ReportBuilder
from .service import DEFAULT_RELOAD_INTERVAL, NodeMonitor

__all__ = [
    "DEFAULT_RELOAD_INTERVAL",
    "Divergence",
    "DivergenceFinder",
    "HeadAggregator",
    "NodeColumn",
    "NodeMonitor",
    "Report",
    "ReportBuilder",
    "ReportExporter",
    "find_split",
    "for_pairs",
    "max_split_length",
]
