"""Builders for headers, hashes and JSON-RPC payloads used across tests."""

from __future__ import annotations

from typing import Any

from node_monitor.chain import BlockHeader
from node_monitor.types import (
    Bytes8,
    Bytes20,
    Bytes32,
    Bytes256,
    Uint64,
    Uint256,
)


def make_hash(height: int, fork: int = 0) -> Bytes32:
    """
    Deterministic block hash for `height` on chain `fork`.

    Different forks never share a hash at the same height.
    """
    return Bytes32(bytes([fork]) + height.to_bytes(31, "big"))


def make_chain(length: int, fork_at: int | None = None, fork: int = 1) -> list[Bytes32]:
    """
    Hash sequence for heights 0..length-1.

    Heights from `fork_at` upward use chain `fork`; lower heights are shared.
    """
    return [
        make_hash(height, fork if fork_at is not None and height >= fork_at else 0)
        for height in range(length)
    ]


def make_header(number: int = 1, **overrides: Any) -> BlockHeader:
    """London-era header with deterministic contents."""
    values: dict[str, Any] = {
        "parent_hash": make_hash(max(number - 1, 0)),
        "uncle_hash": Bytes32(b"\x1d" * 32),
        "coinbase": Bytes20(b"\xaa" * 20),
        "state_root": Bytes32(b"\x01" * 32),
        "tx_root": Bytes32(b"\x02" * 32),
        "receipt_root": Bytes32(b"\x03" * 32),
        "bloom": Bytes256.zero(),
        "difficulty": Uint256(0),
        "number": Uint64(number),
        "gas_limit": Uint64(30_000_000),
        "gas_used": Uint64(21_000),
        "time": Uint64(1_700_000_000 + 12 * number),
        "extra": b"node-monitor",
        "mix_digest": Bytes32(b"\x04" * 32),
        "nonce": Bytes8.zero(),
        "base_fee": Uint256(7),
    }
    values.update(overrides)
    return BlockHeader(**values)


def make_rpc_block(header: BlockHeader, **extra: Any) -> dict[str, Any]:
    """JSON-RPC block object for `header`, as eth_getBlockByNumber returns it."""
    block: dict[str, Any] = header.to_rpc()
    block.update({"size": "0x220", "transactions": [], "uncles": []})
    block.update(extra)
    return block
