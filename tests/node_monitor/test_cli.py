"""Tests for the command-line entry point."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import signal
import sys
from collections.abc import Generator
from dataclasses import dataclass
from pathlib import Path
from unittest.mock import patch

import pytest

from node_monitor.__main__ import ColoredFormatter, main, run_monitor, setup_logging
from node_monitor.config import MonitorConfig
from node_monitor.storage import StoreCorruptionError
from tests.node_monitor.helpers import MockNode, make_chain


@dataclass
class ClosableNode(MockNode):
    """Mock node standing in for an RPCNode, which owns an HTTP client."""

    closed: bool = False

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def restore_root_logger() -> Generator[None, None, None]:
    """Undo handler and level changes made by setup_logging."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLogging:
    """Tests for log formatting and setup."""

    def test_colored_formatter(self) -> None:
        """Levels are colored and tracebacks kept."""
        formatter = ColoredFormatter(datefmt="%H:%M:%S")
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord(
                "node_monitor.test", logging.ERROR, __file__, 1, "failed %s", ("x",), sys.exc_info()
            )

        line = formatter.format(record)
        assert ColoredFormatter.RED in line
        assert "node_monitor.test" in line
        assert "failed x" in line
        assert "ValueError: boom" in line

    @pytest.mark.usefixtures("restore_root_logger")
    def test_setup_logging_levels(self) -> None:
        """Verbose enables debug; plain output uses the standard formatter."""
        setup_logging(verbose=True, no_color=True)

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert type(root.handlers[-1].formatter) is logging.Formatter
        assert logging.getLogger("httpx").level == logging.WARNING


class TestMain:
    """Tests for argument handling and exit codes."""

    @pytest.mark.usefixtures("restore_root_logger")
    def test_invalid_config_exits_2(self, tmp_path: Path) -> None:
        """A configuration that fails validation exits with status 2."""
        path = tmp_path / "monitor.yaml"
        path.write_text("nodes: []\n")

        with patch.object(sys, "argv", ["node-monitor", "--config", str(path)]):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == 2

    @pytest.mark.usefixtures("restore_root_logger")
    def test_storage_error_exits_1(self, tmp_path: Path) -> None:
        """Fatal storage errors exit with status 1."""
        path = tmp_path / "monitor.yaml"
        path.write_text("nodes:\n  - name: geth\n    url: http://127.0.0.1:8545\n")

        async def fail(config: MonitorConfig) -> None:
            raise StoreCorruptionError("headers.db", "disk image is malformed")

        with (
            patch.object(sys, "argv", ["node-monitor", "--config", str(path)]),
            patch("node_monitor.__main__.run_monitor", fail),
        ):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == 1


class TestRunMonitor:
    """Tests for the assembled daemon."""

    def test_runs_until_sigterm(self, tmp_path: Path) -> None:
        """The daemon exports reports and cleans up after SIGTERM."""
        config = MonitorConfig.from_yaml(
            f"""
nodes:
  - name: a
    url: http://a:8545
  - name: b
    url: http://b:8545
reloadInterval: 0.01
dataDir: {tmp_path / "www"}
database: {tmp_path / "headers.db"}
"""
        )
        created: list[ClosableNode] = []

        def make_node(node_name: str, url: str, timeout: float) -> ClosableNode:
            node = ClosableNode(node_name, make_chain(6))
            created.append(node)
            return node

        async def run_test() -> None:
            asyncio.get_running_loop().call_later(0.2, os.kill, os.getpid(), signal.SIGTERM)
            await run_monitor(config)

        with patch("node_monitor.__main__.RPCNode", side_effect=make_node):
            asyncio.run(run_test())

        document = json.loads((tmp_path / "www" / "data.json").read_text())
        assert document["numbers"] == [5]
        assert [node.closed for node in created] == [True, True]
        assert (tmp_path / "headers.db").exists()
