"""
Status report.

A report is a grid: one row per height of interest, one column per node, and
in each cell the hash that node holds at that height. Operators read it top to
bottom; the first row where the columns stop matching is where the chains
split.

JSON form (camelCase)::

    {
      "numbers": [100, 98, 50, 49],
      "cols": [{"name": "geth", "status": "ok", "head": 100}, ...],
      "rows": {"100": ["0xab..", "0xcd..", ""], ...},
      "splitSize": 50
    }

An empty cell means the node had no block at that height, or was unreachable.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from pydantic import Field

from node_monitor.chain import BlockHeader
from node_monitor.nodes import NodeStatus
from node_monitor.types import Bytes32, CamelModel

if TYPE_CHECKING:
    from node_monitor.nodes import Node

SHORT_HASH_CHARS = 10
"""Leading hex characters of a hash shown in the console table."""


class NodeColumn(CamelModel):
    """One node's column header."""

    model_config = CamelModel.model_config | {"frozen": True}

    name: str
    status: NodeStatus
    head: int


class Report(CamelModel):
    """Snapshot of every node's view of the heights of interest."""

    model_config = CamelModel.model_config | {"frozen": True}

    numbers: list[int]
    """Heights of interest, most recent first."""

    cols: list[NodeColumn]
    """Node columns, in configuration order."""

    rows: dict[str, list[str]]
    """Hex hash per column, keyed by decimal height."""

    split_size: int
    """Largest split length between any two nodes in this cycle."""

    hashes: list[Bytes32] = Field(default_factory=list, exclude=True)
    """Every hash shown in the grid, in first-seen order. Not serialized."""

    def to_json(self) -> str:
        """Serialize the report as indented camelCase JSON."""
        return self.model_dump_json(by_alias=True, indent=2)

    def render_table(self) -> str:
        """Render the grid as a plain-text table for the console."""
        heading = ["height", *(col.name for col in self.cols)]
        status = [
            "head",
            *(
                str(col.head) if col.status is NodeStatus.OK else col.status.value
                for col in self.cols
            ),
        ]
        body = [
            [str(number), *(_short(cell) for cell in self.rows.get(str(number), []))]
            for number in self.numbers
        ]

        table = [heading, status, *body]
        widths = [max(len(row[i]) for row in table if i < len(row)) for i in range(len(heading))]
        lines = [
            "  ".join(cell.ljust(width) for cell, width in zip(row, widths, strict=False)).rstrip()
            for row in table
        ]
        lines.append(f"split size: {self.split_size}")
        return "\n".join(lines)


def _short(cell: str) -> str:
    """Abbreviate a hex hash, leaving empty cells as a dash."""
    return cell[:SHORT_HASH_CHARS] if cell else "-"


class ReportBuilder:
    """
    Fills in the report grid one node at a time.

    Only reachable nodes are queried. Along the way it collects the full
    header behind every hash it sees, so the caller can archive them.
    """

    def __init__(self, numbers: Sequence[int]) -> None:
        self._numbers = list(numbers)
        self._cols: list[NodeColumn] = []
        self._cells: dict[int, list[str]] = {number: [] for number in self._numbers}
        # Ordered set of hashes seen.
        self._seen: dict[Bytes32, None] = {}
        self.headers: dict[Bytes32, BlockHeader] = {}
        """Header per hash, for every block that carried one."""

    async def add_node(self, node: Node) -> None:
        """Append a column for `node`."""
        self._cols.append(
            NodeColumn(name=node.name(), status=node.status, head=int(node.head_num()))
        )
        reachable = node.status is NodeStatus.OK

        for number in self._numbers:
            cell = ""
            if reachable:
                block = await node.block_at(number)
                if block is not None:
                    cell = block.hash.to_hex()
                    self._seen.setdefault(block.hash, None)
                    if block.header is not None:
                        self.headers.setdefault(block.hash, block.header)
            self._cells[number].append(cell)

    def build(self, split_size: int) -> Report:
        """Freeze the collected columns into a report."""
        return Report(
            numbers=self._numbers,
            cols=self._cols,
            rows={str(number): cells for number, cells in self._cells.items()},
            split_size=split_size,
            hashes=list(self._seen),
        )
