"""
API server for the monitor's report, exported headers and metrics.

Provides HTTP endpoints for:
- /health - Health check endpoint
- /metrics - Prometheus metrics endpoint
- /data.json - Latest report
- /hashes/{name} - Exported header files

The report and headers are served from the exporter's directory, so the API
shows exactly what a static web server pointed at that directory would.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from aiohttp import web

if TYPE_CHECKING:
    from node_monitor.metrics import MonitorMetrics

logger = logging.getLogger(__name__)

_HEADER_FILE = re.compile(r"^0x[0-9a-f]{64}\.json$")
"""Valid header file names. Anything else is rejected before touching the disk."""


async def _handle_health(_request: web.Request) -> web.Response:
    """Handle health check endpoint."""
    return web.json_response({"status": "healthy", "service": "node-monitor"})


@dataclass(frozen=True, slots=True)
class ApiServerConfig:
    """Configuration for the API server."""

    host: str = "127.0.0.1"
    """Host address to bind to."""

    port: int = 8080
    """Port to listen on."""

    enabled: bool = True
    """Whether the API server is enabled."""


@dataclass(slots=True)
class ApiServer:
    """
    HTTP API server for the monitor's output.

    Uses aiohttp to handle HTTP protocol details efficiently.
    """

    config: ApiServerConfig
    """Server configuration."""

    report_root: Path
    """Export directory holding data.json and hashes/."""

    metrics: MonitorMetrics | None = None
    """Metrics exposed on /metrics."""

    _runner: web.AppRunner | None = field(default=None, init=False)
    """The aiohttp application runner."""

    _site: web.TCPSite | None = field(default=None, init=False)
    """The TCP site for the server."""

    def create_app(self) -> web.Application:
        """Build the aiohttp application with all routes."""
        app = web.Application()
        app.add_routes(
            [
                web.get("/health", _handle_health),
                web.get("/metrics", self._handle_metrics),
                web.get("/data.json", self._handle_report),
                web.get("/hashes/{name}", self._handle_header),
            ]
        )
        return app

    async def start(self) -> None:
        """Start the API server in the background."""
        if not self.config.enabled:
            logger.info("API server is disabled")
            return

        self._runner = web.AppRunner(self.create_app())
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.config.host, self.config.port)
        await self._site.start()

        logger.info("API server listening on %s:%d", self.config.host, self.config.port)

    async def run(self) -> None:
        """
        Run the API server until shutdown.

        This method blocks until stop() is called.
        """
        await self.start()

        while self._runner is not None:
            await asyncio.sleep(1)

    async def stop(self) -> None:
        """Gracefully stop the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("API server stopped")

    async def _handle_metrics(self, _request: web.Request) -> web.Response:
        """Handle Prometheus metrics endpoint."""
        if self.metrics is None:
            raise web.HTTPServiceUnavailable(reason="Metrics not enabled")
        return web.Response(
            body=self.metrics.generate(),
            content_type="text/plain",
            charset="utf-8",
        )

    async def _handle_report(self, _request: web.Request) -> web.Response:
        """Serve the latest report, or 404 before the first export."""
        return self._serve_json(self.report_root / "data.json")

    async def _handle_header(self, request: web.Request) -> web.Response:
        """Serve an exported header file by name."""
        name = request.match_info["name"]
        if not _HEADER_FILE.match(name):
            raise web.HTTPNotFound(reason="Unknown header file")
        return self._serve_json(self.report_root / "hashes" / name)

    def _serve_json(self, path: Path) -> web.Response:
        try:
            body = path.read_bytes()
        except FileNotFoundError as e:
            raise web.HTTPNotFound(reason=f"{path.name} not found") from e
        return web.Response(body=body, content_type="application/json")
