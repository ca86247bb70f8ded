"""
Monitor configuration loader.

Loads the monitor configuration from a YAML file:

    nodes:
      - name: geth
        url: http://127.0.0.1:8545
      - name: nethermind
        url: http://127.0.0.1:8546
    reloadInterval: 10
    dataDir: www
    database: monitor.db
    api:
      enabled: true
      port: 8080

Keys may be written in camelCase or snake_case.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, PositiveFloat, field_validator

from node_monitor.api import ApiServerConfig
from node_monitor.monitor import DEFAULT_RELOAD_INTERVAL
from node_monitor.nodes.rpc import DEFAULT_TIMEOUT
from node_monitor.types import CamelModel


class _ConfigModel(CamelModel):
    """Frozen config base that rejects unknown keys, catching typos early."""

    model_config = CamelModel.model_config | {"extra": "forbid", "frozen": True}


class NodeEndpoint(_ConfigModel):
    """A node to monitor."""

    name: str = Field(min_length=1)
    """Column name in the report."""

    url: str = Field(min_length=1)
    """JSON-RPC endpoint."""


class ApiSettings(_ConfigModel):
    """Settings for the optional HTTP API."""

    host: str = "127.0.0.1"
    port: int = Field(default=8080, ge=0, le=65535)
    enabled: bool = False

    def to_server_config(self) -> ApiServerConfig:
        """Convert to the server's own configuration type."""
        return ApiServerConfig(host=self.host, port=self.port, enabled=self.enabled)


class MonitorConfig(_ConfigModel):
    """Everything needed to run the monitor."""

    nodes: list[NodeEndpoint] = Field(min_length=1)
    """Monitored nodes, in report column order."""

    reload_interval: PositiveFloat = DEFAULT_RELOAD_INTERVAL
    """Seconds between check cycles."""

    data_dir: Path = Path("www")
    """Export root for data.json and header files."""

    database: Path | None = None
    """
    SQLite header store location.

    Without a database nothing is persisted and each report is printed.
    """

    api: ApiSettings = Field(default_factory=ApiSettings)
    """HTTP API settings. Disabled by default."""

    rpc_timeout: PositiveFloat = DEFAULT_TIMEOUT
    """HTTP timeout for every JSON-RPC request, in seconds."""

    @field_validator("nodes")
    @classmethod
    def check_unique_names(cls, nodes: list[NodeEndpoint]) -> list[NodeEndpoint]:
        """Node names identify report columns, so they must be unique."""
        names = [node.name for node in nodes]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate node names: {', '.join(duplicates)}")
        return nodes

    @classmethod
    def from_yaml_file(cls, path: Path | str) -> MonitorConfig:
        """
        Load configuration from a YAML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file is not valid YAML.
            pydantic.ValidationError: If the data fails validation.
        """
        path = Path(path)
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data)

    @classmethod
    def from_yaml(cls, content: str) -> MonitorConfig:
        """
        Load configuration from a YAML string.

        Useful for testing or programmatic config generation.
        """
        data: Any = yaml.safe_load(content)
        return cls.model_validate(data)
