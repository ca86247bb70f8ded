"""
Execution-layer block header.

The Header Problem
------------------
The monitor never validates blocks. It only needs to keep, for every height of
interest, the exact header each node claimed. That requires one canonical byte
form so that:

- The same header always produces the same stored bytes.
- The block hash can be recomputed from what was stored.

Ethereum already defines that form: the RLP list of header fields, and the
block hash is keccak256 of it.

Fork Fields
-----------
Later forks appended optional fields to the end of the list. A header from
before London simply stops after `nonce`. Because the fields are positional,
an optional field may only be present when every optional field before it is
present as well.
"""

from __future__ import annotations

from typing import Any, Final

from Crypto.Hash import keccak
from pydantic import model_validator

from node_monitor.types import (
    BaseBytes,
    BaseUint,
    Bytes8,
    Bytes20,
    Bytes32,
    Bytes256,
    RLPDecodingError,
    StrictBaseModel,
    Uint64,
    Uint256,
    decode_rlp_list,
    encode_rlp,
)

_FIELDS: Final[tuple[tuple[str, str, type], ...]] = (
    ("parent_hash", "parentHash", Bytes32),
    ("uncle_hash", "sha3Uncles", Bytes32),
    ("coinbase", "miner", Bytes20),
    ("state_root", "stateRoot", Bytes32),
    ("tx_root", "transactionsRoot", Bytes32),
    ("receipt_root", "receiptsRoot", Bytes32),
    ("bloom", "logsBloom", Bytes256),
    ("difficulty", "difficulty", Uint256),
    ("number", "number", Uint64),
    ("gas_limit", "gasLimit", Uint64),
    ("gas_used", "gasUsed", Uint64),
    ("time", "timestamp", Uint64),
    ("extra", "extraData", bytes),
    ("mix_digest", "mixHash", Bytes32),
    ("nonce", "nonce", Bytes8),
    # Optional fork fields, in wire order.
    ("base_fee", "baseFeePerGas", Uint256),
    ("withdrawals_root", "withdrawalsRoot", Bytes32),
    ("blob_gas_used", "blobGasUsed", Uint64),
    ("excess_blob_gas", "excessBlobGas", Uint64),
    ("parent_beacon_root", "parentBeaconBlockRoot", Bytes32),
    ("requests_hash", "requestsHash", Bytes32),
)
"""Header fields as (attribute, JSON-RPC key, type), in RLP order."""

REQUIRED_FIELD_COUNT: Final = 15
"""Number of leading fields every header carries."""

_OPTIONAL_FIELDS: Final = tuple(name for name, _, _ in _FIELDS[REQUIRED_FIELD_COUNT:])


class HeaderDecodeError(RLPDecodingError):
    """Raised when well-formed RLP does not describe a block header."""


def keccak256(data: bytes) -> Bytes32:
    """Compute the keccak256 digest used for Ethereum block hashes."""
    k = keccak.new(digest_bits=256)
    k.update(data)
    return Bytes32(k.digest())


class BlockHeader(StrictBaseModel):
    """An Ethereum execution block header."""

    parent_hash: Bytes32
    uncle_hash: Bytes32
    coinbase: Bytes20
    state_root: Bytes32
    tx_root: Bytes32
    receipt_root: Bytes32
    bloom: Bytes256
    difficulty: Uint256
    number: Uint64
    gas_limit: Uint64
    gas_used: Uint64
    time: Uint64
    extra: bytes
    mix_digest: Bytes32
    nonce: Bytes8

    base_fee: Uint256 | None = None
    """EIP-1559 base fee (London)."""

    withdrawals_root: Bytes32 | None = None
    """EIP-4895 withdrawals root (Shanghai)."""

    blob_gas_used: Uint64 | None = None
    """EIP-4844 blob gas used (Cancun)."""

    excess_blob_gas: Uint64 | None = None
    """EIP-4844 excess blob gas (Cancun)."""

    parent_beacon_root: Bytes32 | None = None
    """EIP-4788 parent beacon block root (Cancun)."""

    requests_hash: Bytes32 | None = None
    """EIP-7685 requests hash (Prague)."""

    @model_validator(mode="after")
    def check_optional_fields_contiguous(self) -> BlockHeader:
        """Reject headers whose optional fields have gaps, since RLP is positional."""
        seen_absent = None
        for name in _OPTIONAL_FIELDS:
            value = getattr(self, name)
            if value is None:
                seen_absent = seen_absent or name
            elif seen_absent is not None:
                raise ValueError(f"{name} is set but earlier fork field {seen_absent} is not")
        return self

    # -------------------------------------------------------------------------
    # RLP
    # -------------------------------------------------------------------------

    def to_rlp_list(self) -> list[bytes]:
        """Return the positional list of field encodings."""
        items: list[bytes] = []
        for name, _, _ in _FIELDS:
            value = getattr(self, name)
            if value is None:
                break
            items.append(value.to_rlp_bytes() if isinstance(value, BaseUint) else bytes(value))
        return items

    def encode_rlp(self) -> bytes:
        """Return the canonical RLP encoding of the header."""
        return encode_rlp(self.to_rlp_list())  # type: ignore[arg-type]

    @classmethod
    def decode_rlp(cls, data: bytes) -> BlockHeader:
        """
        Parse a header from its canonical RLP encoding.

        Raises:
            RLPDecodingError: If the bytes are not canonical RLP.
            HeaderDecodeError: If the list does not have the shape of a header.
        """
        items = decode_rlp_list(data)
        if not REQUIRED_FIELD_COUNT <= len(items) <= len(_FIELDS):
            raise HeaderDecodeError(
                f"Header must have {REQUIRED_FIELD_COUNT}-{len(_FIELDS)} fields, got {len(items)}"
            )

        values: dict[str, Any] = {}
        for (name, _, kind), raw in zip(_FIELDS, items, strict=False):
            try:
                if issubclass(kind, BaseUint):
                    values[name] = kind.from_rlp_bytes(raw)
                elif issubclass(kind, BaseBytes):
                    values[name] = kind(raw)
                else:
                    values[name] = raw
            except (ValueError, OverflowError) as e:
                raise HeaderDecodeError(f"Invalid {name}: {e}") from e
        return cls(**values)

    def hash(self) -> Bytes32:
        """Return the block hash: keccak256 of the RLP encoding."""
        return keccak256(self.encode_rlp())

    # -------------------------------------------------------------------------
    # JSON-RPC
    # -------------------------------------------------------------------------
    #
    # Nodes return headers as part of `eth_getBlockByNumber`. The same shape
    # is used for the exported header files so they can be diffed against
    # any client's output.

    @classmethod
    def from_rpc(cls, data: dict[str, Any]) -> BlockHeader:
        """
        Build a header from a JSON-RPC block object.

        Unknown keys (transactions, size, totalDifficulty, ...) are ignored.

        Raises:
            ValueError: If a required key is missing or malformed.
        """
        values: dict[str, Any] = {}
        for index, (name, key, kind) in enumerate(_FIELDS):
            raw = data.get(key)
            if raw is None:
                if index < REQUIRED_FIELD_COUNT:
                    raise ValueError(f"Block object is missing {key}")
                break
            if issubclass(kind, BaseUint):
                values[name] = kind.from_hex(raw)
            elif issubclass(kind, BaseBytes):
                values[name] = kind(raw)
            else:
                values[name] = bytes.fromhex(raw.removeprefix("0x"))
        return cls(**values)

    def to_rpc(self) -> dict[str, str]:
        """Return the header in JSON-RPC form, including its `hash`."""
        result: dict[str, str] = {}
        for name, key, _ in _FIELDS:
            value = getattr(self, name)
            if value is None:
                break
            if isinstance(value, (BaseUint, BaseBytes)):
                result[key] = value.to_hex()
            else:
                result[key] = "0x" + value.hex()
        result["hash"] = self.hash().to_hex()
        return result
