"""
API server module for the monitor's report and metrics.

Provides HTTP endpoints for:
- /data.json - Latest report
- /hashes/{name} - Exported block headers
- /metrics - Prometheus metrics
- /health - Health check endpoint
"""

from .server import ApiServer, ApiServerConfig

__all__ = [
    "ApiServer",
    "ApiServerConfig",
]
