"""
Abstract header store interface.

Defines the Protocol that all header store implementations must follow.
Uses structural subtyping for flexibility.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from node_monitor.chain import BlockHeader
    from node_monitor.types import Bytes32


class HeaderStore(Protocol):
    """
    Content-addressed, write-once archive of block headers.

    Keys are block hashes. Values are canonically encoded headers. Once a
    key exists it is never overwritten or deleted, so historical splits can be
    inspected after the nodes have moved on.

    The monitor loop is the only writer. Readers must tolerate seeing the
    state of the previous cycle.
    """

    def add(self, block_hash: Bytes32, header: BlockHeader) -> None:
        """
        Store a header under its hash unless the hash is already present.

        Args:
            block_hash: Identity hash of the block.
            header: Header to persist.

        Raises:
            InvariantViolationError: If the header cannot be encoded.
            HeaderWriteError: If the write is refused. Not fatal.
        """
        ...

    def get(self, block_hash: Bytes32) -> BlockHeader | None:
        """
        Retrieve a header by hash.

        Returns:
            The stored header, or None if the hash is unknown.

        Raises:
            InvariantViolationError: If the stored bytes cannot be decoded.
        """
        ...

    def has(self, block_hash: Bytes32) -> bool:
        """Check whether a header is stored under `block_hash`."""
        ...

    def close(self) -> None:
        """Close the store and release resources."""
        ...
