"""
Node capability interface.

A node is anything that can answer "what do you currently think the chain looks
like". The monitor only talks to nodes through the `Node` protocol, so Geth,
Nethermind, Besu or a test double are interchangeable.

Uses structural subtyping: any class with matching methods satisfies the protocol.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from node_monitor.chain import BlockHeader
    from node_monitor.types import Bytes32, Uint64


class NodeStatus(str, Enum):
    """Outcome of the most recent contact with a node."""

    OK = "ok"
    """The node answered the last poll."""

    UNREACHABLE = "unreachable"
    """The last poll failed. The node is left out of this cycle's comparisons."""


class NodeError(Exception):
    """
    Raised when a node cannot be queried.

    Covers transport failures, RPC error responses and malformed replies.
    The monitor treats it as a per-node, per-cycle condition.
    """


@dataclass(frozen=True, slots=True)
class BlockRef:
    """A node's block at one height, as seen in the current cycle."""

    number: Uint64
    """Height of the block."""

    hash: Bytes32
    """Identity hash reported by the node."""

    parent_hash: Bytes32
    """Hash of the block's parent, used to detect reorgs under a cache."""

    header: BlockHeader | None = field(default=None, compare=False)
    """Full header when the node supplied one. Needed for export."""


class Node(Protocol):
    """
    Protocol for a monitored blockchain client.

    Methods that reach the node are coroutines. A slow node blocks the caller:
    the monitor does not impose per-node timeouts.
    """

    @property
    def status(self) -> NodeStatus:
        """Status set by the most recent poll."""
        ...

    def name(self) -> str:
        """Operator-facing identifier of the node."""
        ...

    def set_status(self, status: NodeStatus) -> None:
        """
        Record the outcome of a poll.

        Only the monitor's polling step calls this.
        """
        ...

    async def version(self) -> str:
        """
        Return the client version string.

        Raises:
            NodeError: If the node cannot be reached.
        """
        ...

    async def update_latest(self) -> None:
        """
        Refresh the node's latest head.

        Raises:
            NodeError: If the node cannot be reached.
        """
        ...

    def head_num(self) -> Uint64:
        """Height of the head fetched by the last successful `update_latest`."""
        ...

    async def block_at(self, number: int, force: bool = False) -> BlockRef | None:
        """
        Return the node's block at `number`, or None if it has none.

        Args:
            number: Block height.
            force: Bypass any cached answer.
        """
        ...

    async def hash_at(self, number: int, force: bool = False) -> Bytes32 | None:
        """
        Return the node's block hash at `number`, or None if it has none.

        Args:
            number: Block height.
            force: Bypass any cached answer.
        """
        ...
