"""
Node monitor service that drives the check cycle.

How It Works
------------
On creation every node is probed once for its client version, then a first
check runs immediately. After `start()` a single background task repeats:

1. Wait `reload_interval` seconds (or until stopped)
2. Poll every node for its latest head
3. Compare every pair of reachable nodes
4. Aggregate the heights of interest
5. Build the report and publish metrics
6. Persist headers and export the report

Cycles never overlap: the next wait only begins when the previous cycle has
finished. A slow node therefore delays the whole cycle.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from node_monitor.nodes import Node, NodeError, NodeStatus
from node_monitor.storage import HeaderWriteError

from .divergence import DivergenceFinder, max_split_length
from .heads import HeadAggregator
from .report import Report, ReportBuilder

if TYPE_CHECKING:
    from node_monitor.chain import BlockHeader
    from node_monitor.metrics import MonitorMetrics
    from node_monitor.storage import HeaderStore
    from node_monitor.types import Bytes32

    from .export import ReportExporter

logger = logging.getLogger(__name__)

DEFAULT_RELOAD_INTERVAL = 10.0
"""Seconds between check cycles when none is configured."""


@dataclass(slots=True)
class NodeMonitor:
    """
    Periodically cross-checks a fleet of nodes for chain splits.

    Use `create()` rather than the constructor: it performs the health probe
    and the first check.
    """

    nodes: list[Node]
    """Monitored nodes, in report column order."""

    store: HeaderStore | None = None
    """Header archive. Without one, reports are printed to stdout."""

    exporter: ReportExporter | None = None
    """Static report export. Optional."""

    metrics: MonitorMetrics | None = None
    """Metrics to update after each cycle. Optional."""

    reload_interval: float = DEFAULT_RELOAD_INTERVAL
    """Seconds to wait between cycles."""

    finder: DivergenceFinder = field(default_factory=DivergenceFinder)
    """Pairwise comparison strategy."""

    _quit: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    """Set by `stop()`. Only observed while waiting between cycles."""

    _task: asyncio.Task[None] | None = field(default=None, repr=False)
    """Background loop task, once started."""

    @classmethod
    async def create(
        cls,
        nodes: Sequence[Node],
        store: HeaderStore | None = None,
        exporter: ReportExporter | None = None,
        metrics: MonitorMetrics | None = None,
        reload_interval: float | None = None,
    ) -> NodeMonitor:
        """
        Build a monitor, probe every node and run the first check.

        A zero or missing `reload_interval` falls back to the default.

        Raises:
            StorageError: If the first check hits a fatal storage failure.
        """
        monitor = cls(
            nodes=list(nodes),
            store=store,
            exporter=exporter,
            metrics=metrics,
            reload_interval=reload_interval or DEFAULT_RELOAD_INTERVAL,
        )
        await monitor._probe()
        await monitor.check()
        return monitor

    async def _probe(self) -> None:
        """Ask every node for its version to seed its status."""
        for node in self.nodes:
            try:
                version = await node.version()
            except Exception as e:
                logger.error("Node %s is not reachable: %s", node.name(), e)
                node.set_status(NodeStatus.UNREACHABLE)
                continue
            logger.info("Connected to %s running %s", node.name(), version)
            node.set_status(NodeStatus.OK)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> asyncio.Task[None]:
        """Spawn the background loop and return its task."""
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """
        Stop the loop and wait for it to exit.

        A cycle already in progress is allowed to finish. Any error that ended
        the loop is re-raised here.
        """
        self._quit.set()
        if self._task is not None:
            await self._task

    async def run(self) -> None:
        """Wait, check, repeat until stopped."""
        while True:
            try:
                await asyncio.wait_for(self._quit.wait(), timeout=self.reload_interval)
            except TimeoutError:
                await self.check()
                continue
            logger.info("Node monitor stopped")
            return

    # -------------------------------------------------------------------------
    # Check cycle
    # -------------------------------------------------------------------------

    async def check(self) -> Report:
        """
        Run one full cycle and return its report.

        Raises:
            StorageError: On fatal header store failures.
        """
        started = time.perf_counter()
        heads = HeadAggregator()

        active = await self._poll(heads)
        divergences = await self.finder.run(active, heads)
        split_size = max_split_length(divergences)

        builder = ReportBuilder(heads.heights())
        for node in self.nodes:
            await builder.add_node(node)
        report = builder.build(split_size)

        if self.metrics is not None:
            self.metrics.record_check(split_size, len(active), time.perf_counter() - started)

        self._persist(report, builder.headers)
        logger.debug(
            "Check done: %d/%d nodes reachable, %d splits, split size %d",
            len(active),
            len(self.nodes),
            len(divergences),
            split_size,
        )
        return report

    async def _poll(self, heads: HeadAggregator) -> list[Node]:
        """Refresh every node's head. Returns the nodes that answered."""
        active: list[Node] = []
        for node in self.nodes:
            try:
                await node.update_latest()
            except NodeError as e:
                logger.warning("Failed polling %s: %s", node.name(), e)
                node.set_status(NodeStatus.UNREACHABLE)
                continue
            except Exception:
                logger.exception("Unexpected error polling %s", node.name())
                node.set_status(NodeStatus.UNREACHABLE)
                continue

            node.set_status(NodeStatus.OK)
            heads.add(node.head_num())
            active.append(node)
        return active

    def _persist(self, report: Report, headers: Mapping[Bytes32, BlockHeader]) -> None:
        """
        Archive headers and export the report.

        With neither a store nor an exporter the report goes to stdout.
        Refused header writes and export write failures only cost this
        cycle's persistence. Broken store invariants propagate.
        """
        if self.store is None and self.exporter is None:
            print(report.to_json())
            print(report.render_table())
            return

        if self.store is not None:
            try:
                for block_hash, header in headers.items():
                    self.store.add(block_hash, header)
            except HeaderWriteError as e:
                logger.warning("Skipping persistence this cycle: %s", e)
                return

        if self.exporter is None:
            return

        try:
            self.exporter.write_report(report)
            for block_hash in report.hashes:
                header = (
                    self.store.get(block_hash)
                    if self.store is not None
                    else headers.get(block_hash)
                )
                if header is None:
                    logger.warning("No header available for %s", block_hash.to_hex())
                    continue
                self.exporter.write_header(block_hash, header)
        except OSError as e:
            logger.warning("Failed exporting report: %s", e)
