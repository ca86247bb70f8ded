"""
Report export to a static directory.

Layout under the export root::

    data.json                 latest report, replaced every cycle
    hashes/0x<hash>.json      one header per block shown in any report

Header files are named by content hash, so an existing file never needs to be
rewritten. The directory can be served as-is by any static web server.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from node_monitor.chain import BlockHeader
from node_monitor.types import Bytes32

from .report import Report

logger = logging.getLogger(__name__)

REPORT_FILENAME = "data.json"
HASHES_DIRNAME = "hashes"


@dataclass(slots=True)
class ReportExporter:
    """Writes reports and headers under a root directory."""

    root: Path
    """Export root directory. Created on first write."""

    @property
    def report_path(self) -> Path:
        """Location of the latest report."""
        return self.root / REPORT_FILENAME

    def header_path(self, block_hash: Bytes32) -> Path:
        """Location of the header file for `block_hash`."""
        return self.root / HASHES_DIRNAME / f"{block_hash.to_hex()}.json"

    def write_report(self, report: Report) -> Path:
        """
        Replace the latest report.

        The file is swapped in atomically so readers never see a partial report.

        Raises:
            OSError: If the file cannot be written.
        """
        path = self.report_path
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(report.to_json())
        os.replace(tmp, path)
        return path

    def write_header(self, block_hash: Bytes32, header: BlockHeader) -> bool:
        """
        Write the header file for `block_hash` unless it already exists.

        Returns:
            True if a new file was written.

        Raises:
            OSError: If the file cannot be written.
        """
        path = self.header_path(block_hash)
        if path.exists():
            return False

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(header.to_rpc(), indent=2))
        logger.debug("Exported header %s", block_hash.to_hex())
        return True
