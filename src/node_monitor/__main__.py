"""
Node monitor CLI entry point.

Watch a fleet of Ethereum execution clients and report where their chains split.

Usage::

    python -m node_monitor --config monitor.yaml
    python -m node_monitor --config monitor.yaml --verbose --no-color

Options:
    --config     Path to the monitor YAML file (required)
    --verbose    Enable debug logging
    --no-color   Disable colored logging output
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from pathlib import Path

import yaml
from pydantic import ValidationError

from node_monitor.api import ApiServer
from node_monitor.config import MonitorConfig
from node_monitor.metrics import MonitorMetrics
from node_monitor.monitor import NodeMonitor, ReportExporter
from node_monitor.nodes import RPCNode
from node_monitor.storage import SQLiteHeaderStore, StorageError

logger = logging.getLogger(__name__)


class ColoredFormatter(logging.Formatter):
    """Logging formatter with ANSI colors for better readability."""

    GREY = "\x1b[38;5;244m"
    BLUE = "\x1b[38;5;39m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    BOLD_RED = "\x1b[38;5;196;1m"
    CYAN = "\x1b[38;5;51m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        timestamp = f"{self.CYAN}{self.formatTime(record, self.datefmt)}{self.RESET}"
        levelname = f"{color}{record.levelname:8}{self.RESET}"
        name = f"{self.BLUE}{record.name}{self.RESET}"
        line = f"{timestamp} {levelname} {name}: {record.getMessage()}"

        # Tracebacks from logger.exception() would otherwise be lost.
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Configure root logging with optional colors."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if no_color:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ColoredFormatter(datefmt="%Y-%m-%d %H:%M:%S")
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    # httpx logs every request at INFO, one per hash lookup.
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def run_monitor(config: MonitorConfig) -> None:
    """
    Run the monitor until SIGINT or SIGTERM.

    Headers and the exported report are only written when a database is
    configured. Otherwise every report is printed.

    Raises:
        StorageError: On a fatal header store failure.
    """
    nodes = [
        RPCNode(node_name=endpoint.name, url=endpoint.url, timeout=config.rpc_timeout)
        for endpoint in config.nodes
    ]
    store = SQLiteHeaderStore(config.database) if config.database is not None else None
    exporter = ReportExporter(config.data_dir) if store is not None else None
    metrics = MonitorMetrics()
    api = ApiServer(config.api.to_server_config(), config.data_dir, metrics)

    stop_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on every platform. Ctrl-C still raises KeyboardInterrupt.
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop_requested.set)

    try:
        await api.start()
        monitor = await NodeMonitor.create(
            nodes,
            store=store,
            exporter=exporter,
            metrics=metrics,
            reload_interval=config.reload_interval,
        )
        logger.info(
            "Monitoring %d nodes every %.1fs", len(nodes), monitor.reload_interval
        )

        loop_task = monitor.start()
        stop_task = asyncio.create_task(stop_requested.wait())
        await asyncio.wait({loop_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        stop_task.cancel()

        logger.info("Shutting down...")
        await monitor.stop()
    finally:
        await api.stop()
        for node in nodes:
            await node.aclose()
        if store is not None:
            store.close()


def main() -> None:
    """Parse arguments and run the monitor."""
    parser = argparse.ArgumentParser(
        description="Detect chain splits between Ethereum execution clients",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to the monitor YAML file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored logging output",
    )

    args = parser.parse_args()

    setup_logging(args.verbose, args.no_color)

    try:
        config = MonitorConfig.from_yaml_file(args.config)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        logger.error("Invalid configuration %s: %s", args.config, e)
        sys.exit(2)

    try:
        asyncio.run(run_monitor(config))
    except StorageError as e:
        logger.critical("Fatal storage error: %s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
