"""Tests for the execution block header model."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from node_monitor.chain import BlockHeader, HeaderDecodeError, keccak256
from node_monitor.types import Bytes32, Uint64, decode_rlp_list, encode_rlp
from tests.node_monitor.helpers import make_header, make_rpc_block


class TestKeccak:
    """Tests for the hash function behind block identity."""

    def test_empty_input(self) -> None:
        """keccak256 of nothing matches the well-known constant."""
        assert keccak256(b"").to_hex() == (
            "0xc5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )

    def test_empty_uncle_list(self) -> None:
        """The empty ommers hash found in every post-merge header."""
        assert keccak256(encode_rlp([])).to_hex() == (
            "0x1dcc4de8dec75d7aab85b567b6ccd41ad312451b948a7413f0a142fd40d49347"
        )


class TestRLP:
    """Tests for the canonical header encoding."""

    def test_decode_restores_header(self) -> None:
        """The stored bytes decode to an equal header with the same hash."""
        header = make_header(number=42)
        decoded = BlockHeader.decode_rlp(header.encode_rlp())

        assert decoded == header
        assert decoded.hash() == header.hash()

    def test_hash_is_keccak_of_encoding(self) -> None:
        """Block identity is keccak256 over the RLP bytes."""
        header = make_header(number=7)
        assert header.hash() == keccak256(header.encode_rlp())

    def test_pre_london_header_stops_after_nonce(self) -> None:
        """Without fork fields the list has exactly 15 entries."""
        header = make_header(number=1, base_fee=None)
        assert len(decode_rlp_list(header.encode_rlp())) == 15

    def test_fork_fields_are_appended(self) -> None:
        """Cancun fields extend the list in wire order."""
        header = make_header(
            number=1,
            withdrawals_root=Bytes32(b"\x05" * 32),
            blob_gas_used=Uint64(0),
            excess_blob_gas=Uint64(0),
            parent_beacon_root=Bytes32(b"\x06" * 32),
        )
        items = decode_rlp_list(header.encode_rlp())

        assert len(items) == 20
        assert items[-1] == b"\x06" * 32
        assert BlockHeader.decode_rlp(header.encode_rlp()) == header

    def test_rejects_gap_in_fork_fields(self) -> None:
        """A later fork field cannot be present without the earlier ones."""
        with pytest.raises(ValidationError, match="base_fee"):
            make_header(number=1, base_fee=None, withdrawals_root=Bytes32.zero())

    def test_decode_rejects_short_list(self) -> None:
        """Fewer than 15 fields is not a header."""
        items = make_header().to_rlp_list()[:14]
        with pytest.raises(HeaderDecodeError, match="fields"):
            BlockHeader.decode_rlp(encode_rlp(items))  # type: ignore[arg-type]

    def test_decode_rejects_wrong_field_width(self) -> None:
        """A 19-byte coinbase is rejected with the field name."""
        items = make_header().to_rlp_list()
        items[2] = b"\xaa" * 19
        with pytest.raises(HeaderDecodeError, match="coinbase"):
            BlockHeader.decode_rlp(encode_rlp(items))  # type: ignore[arg-type]


class TestRPC:
    """Tests for the JSON-RPC representation."""

    def test_from_rpc_reads_block_object(self) -> None:
        """Block objects parse, ignoring non-header keys."""
        header = make_header(number=9)
        assert BlockHeader.from_rpc(make_rpc_block(header)) == header

    def test_to_rpc_includes_hash(self) -> None:
        """The exported form carries the block hash and hex quantities."""
        header = make_header(number=9)
        rpc = header.to_rpc()

        assert rpc["hash"] == header.hash().to_hex()
        assert rpc["number"] == "0x9"
        assert rpc["miner"] == "0x" + "aa" * 20
        assert rpc["extraData"] == "0x" + b"node-monitor".hex()
        assert "withdrawalsRoot" not in rpc

    def test_from_rpc_requires_core_fields(self) -> None:
        """A block object without a miner cannot form a header."""
        block = make_rpc_block(make_header())
        del block["miner"]
        with pytest.raises(ValueError, match="miner"):
            BlockHeader.from_rpc(block)

    def test_from_rpc_stops_at_first_absent_fork_field(self) -> None:
        """Fork fields after a missing one are ignored."""
        block = make_rpc_block(make_header())
        block["blobGasUsed"] = "0x0"

        header = BlockHeader.from_rpc(block)
        assert header.base_fee == 7
        assert header.blob_gas_used is None
