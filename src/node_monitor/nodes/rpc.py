"""
JSON-RPC node.

Talks to any execution client that serves the standard Ethereum JSON-RPC API
over HTTP. Only two methods are needed:

- `web3_clientVersion` for the health probe
- `eth_getBlockByNumber` for heads and for blocks at a given height

Block Cache
-----------
The divergence search asks for the same low heights again and again, cycle
after cycle. Those answers rarely change, so they are cached per height.

The cache is only valid while the node keeps extending the same chain. When a
new head does not build on the cached block below it, or the head moves
backwards, the node has reorged and every cached answer is dropped.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Final

import httpx

from node_monitor.chain import BlockHeader
from node_monitor.types import Bytes32, Uint64

from .base import BlockRef, NodeError, NodeStatus

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT: Final = 30.0
"""HTTP request timeout in seconds."""

CACHE_LIMIT: Final = 8192
"""Maximum number of heights kept in the block cache."""


def parse_block(result: dict[str, Any]) -> BlockRef:
    """
    Convert a JSON-RPC block object into a BlockRef.

    The header is attached when every header field parses. Clients that omit
    fields (or add ones we do not model) still yield a usable hash.

    Raises:
        NodeError: If the number or hashes are missing or malformed.
    """
    try:
        number = Uint64.from_hex(result["number"])
        block_hash = Bytes32(result["hash"])
        parent_hash = Bytes32(result["parentHash"])
    except (KeyError, ValueError, TypeError, OverflowError) as e:
        raise NodeError(f"Malformed block object: {e}") from e

    header: BlockHeader | None
    try:
        header = BlockHeader.from_rpc(result)
    except (ValueError, TypeError) as e:
        logger.debug("Block %d carries an unsupported header: %s", number, e)
        header = None

    return BlockRef(number=number, hash=block_hash, parent_hash=parent_hash, header=header)


@dataclass(slots=True)
class RPCNode:
    """A node reached over HTTP JSON-RPC."""

    node_name: str
    """Operator-facing identifier."""

    url: str
    """JSON-RPC endpoint, e.g. http://127.0.0.1:8545."""

    timeout: float = DEFAULT_TIMEOUT
    """Transport timeout. The monitor itself never times a node out."""

    client: httpx.AsyncClient | None = None
    """HTTP client. Created lazily when not injected."""

    _status: NodeStatus = field(default=NodeStatus.UNREACHABLE, repr=False)
    _head: BlockRef | None = field(default=None, repr=False)
    _cache: dict[int, BlockRef] = field(default_factory=dict, repr=False)
    _ids: itertools.count = field(default_factory=itertools.count, repr=False)

    @property
    def status(self) -> NodeStatus:
        """Status set by the most recent poll."""
        return self._status

    def name(self) -> str:
        """Return the configured node name."""
        return self.node_name

    def set_status(self, status: NodeStatus) -> None:
        """Record the outcome of a poll."""
        self._status = status

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def _call(self, method: str, *params: Any) -> Any:
        """
        Perform one JSON-RPC call and return its `result` member.

        Raises:
            NodeError: On transport failure, HTTP error status or RPC error.
        """
        if self.client is None:
            self.client = httpx.AsyncClient(timeout=self.timeout)

        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": list(params),
        }
        try:
            response = await self.client.post(self.url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            raise NodeError(
                f"{self.node_name}: HTTP {exc.response.status_code} from {method}"
            ) from exc
        except httpx.HTTPError as exc:
            raise NodeError(f"{self.node_name}: {method} failed: {exc}") from exc
        except ValueError as exc:
            raise NodeError(f"{self.node_name}: {method} returned invalid JSON") from exc

        if not isinstance(body, dict):
            raise NodeError(f"{self.node_name}: {method} returned a non-object response")
        if body.get("error") is not None:
            raise NodeError(f"{self.node_name}: {method} error: {body['error']}")
        return body.get("result")

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self.client is not None:
            await self.client.aclose()
            self.client = None

    # -------------------------------------------------------------------------
    # Node protocol
    # -------------------------------------------------------------------------

    async def version(self) -> str:
        """Return the client version string."""
        result = await self._call("web3_clientVersion")
        if not isinstance(result, str):
            raise NodeError(f"{self.node_name}: unexpected version {result!r}")
        return result

    async def update_latest(self) -> None:
        """Fetch the latest block and invalidate the cache on reorg."""
        result = await self._call("eth_getBlockByNumber", "latest", False)
        if not isinstance(result, dict):
            raise NodeError(f"{self.node_name}: no latest block")
        head = parse_block(result)

        if self._is_reorg(head) or not await self._anchor_holds(head):
            logger.info(
                "Reorg on %s at %d, dropping %d cached blocks",
                self.node_name,
                head.number,
                len(self._cache),
            )
            self._cache.clear()

        self._remember(head)
        self._head = head

    def _is_reorg(self, head: BlockRef) -> bool:
        """Check whether `head` abandons any cached block."""
        previous = self._head
        if previous is not None and head.number < previous.number:
            return True
        below = self._cache.get(int(head.number) - 1)
        if below is not None and below.hash != head.parent_hash:
            return True
        same = self._cache.get(int(head.number))
        return same is not None and same.hash != head.hash

    async def _anchor_holds(self, head: BlockRef) -> bool:
        """
        Re-read the highest cached block below `head` and compare hashes.

        When the parent of `head` is cached, `_is_reorg` has already checked
        the link. After a jump of several blocks nothing links the new head to
        the cache, and a fork anywhere at or below the old head would go
        unnoticed. A matching anchor means every cached block below it is
        still canonical.

        Raises:
            NodeError: If the anchor block cannot be fetched.
        """
        number = int(head.number)
        if number - 1 in self._cache:
            return True
        below = [height for height in self._cache if height < number]
        if not below:
            return True

        anchor = max(below)
        result = await self._call("eth_getBlockByNumber", hex(anchor), False)
        if not isinstance(result, dict):
            return False
        return parse_block(result).hash == self._cache[anchor].hash

    def _remember(self, ref: BlockRef) -> None:
        """Cache a block, evicting the oldest entry when full."""
        if len(self._cache) >= CACHE_LIMIT:
            self._cache.pop(next(iter(self._cache)))
        self._cache[int(ref.number)] = ref

    def head_num(self) -> Uint64:
        """Height of the last fetched head (0 before the first poll)."""
        return self._head.number if self._head is not None else Uint64(0)

    async def block_at(self, number: int, force: bool = False) -> BlockRef | None:
        """
        Return the block at `number`.

        RPC failures are logged and reported as a missing block. The caller
        skips the comparison for this cycle either way.
        """
        if not force and number in self._cache:
            return self._cache[number]

        try:
            result = await self._call("eth_getBlockByNumber", hex(number), False)
            if result is None:
                return None
            ref = parse_block(result)
        except NodeError as e:
            logger.warning("Failed fetching block %d from %s: %s", number, self.node_name, e)
            return None

        # Only blocks at or below the known head are stable enough to cache.
        if self._head is not None and number <= self._head.number:
            self._remember(ref)
        return ref

    async def hash_at(self, number: int, force: bool = False) -> Bytes32 | None:
        """Return the hash of the block at `number`."""
        ref = await self.block_at(number, force)
        return ref.hash if ref is not None else None
