"""
Recursive Length Prefix (RLP)
=============================

RLP is the canonical wire and storage encoding of Ethereum block headers.
Two nodes that agree on a header agree on its RLP bytes, and the block hash is
the keccak256 of exactly those bytes. The header store keeps headers in this
form for that reason.

Prefix ranges
-------------

+-------------+------------------------------------------------------------+
| First byte  | Meaning                                                    |
+=============+============================================================+
| [0x00-0x7f] | The byte itself is a one-byte string                       |
+-------------+------------------------------------------------------------+
| [0x80-0xb7] | String of 0-55 bytes, length = prefix - 0x80               |
+-------------+------------------------------------------------------------+
| [0xb8-0xbf] | Long string, prefix - 0xb7 bytes of big-endian length      |
+-------------+------------------------------------------------------------+
| [0xc0-0xf7] | List with 0-55 payload bytes, length = prefix - 0xc0       |
+-------------+------------------------------------------------------------+
| [0xf8-0xff] | Long list, prefix - 0xf7 bytes of big-endian length        |
+-------------+------------------------------------------------------------+

The decoder rejects every non-canonical form, so decode(encode(x)) == x and
encode(decode(b)) == b for all accepted inputs.

References:
----------
- Ethereum Yellow Paper, Appendix B
- https://ethereum.org/en/developers/docs/data-structures-and-encoding/rlp/
"""

from __future__ import annotations

from typing import TypeAlias

RLPItem: TypeAlias = bytes | list["RLPItem"]
"""A byte string or a (possibly nested) list of RLP items."""

STRING_OFFSET = 0x80
"""Prefix base for strings. Short strings use STRING_OFFSET + length."""

LIST_OFFSET = 0xC0
"""Prefix base for lists. Short lists use LIST_OFFSET + payload length."""

SHORT_LIMIT = 55
"""Largest payload that fits a single-byte prefix."""


class RLPError(Exception):
    """Base class for RLP codec failures."""


class RLPEncodingError(RLPError):
    """Raised when a value has no RLP representation."""


class RLPDecodingError(RLPError):
    """Raised when bytes are not canonical RLP."""


# -----------------------------------------------------------------------------
# Encoding
# -----------------------------------------------------------------------------


def encode_rlp(item: RLPItem) -> bytes:
    """
    Encode an item using RLP.

    Raises:
        RLPEncodingError: If the item (or any nested element) is not bytes or list.
    """
    if isinstance(item, (bytes, bytearray)):
        data = bytes(item)
        if len(data) == 1 and data[0] < STRING_OFFSET:
            return data
        return _prefix(STRING_OFFSET, len(data)) + data
    if isinstance(item, list):
        payload = b"".join(encode_rlp(element) for element in item)
        return _prefix(LIST_OFFSET, len(payload)) + payload
    raise RLPEncodingError(f"Cannot RLP encode type: {type(item).__name__}")


def _prefix(offset: int, length: int) -> bytes:
    """Build the prefix for a payload of `length` bytes."""
    if length <= SHORT_LIMIT:
        return bytes([offset + length])
    length_bytes = length.to_bytes((length.bit_length() + 7) // 8, "big")
    return bytes([offset + SHORT_LIMIT + len(length_bytes)]) + length_bytes


# -----------------------------------------------------------------------------
# Decoding
# -----------------------------------------------------------------------------


def decode_rlp(data: bytes) -> RLPItem:
    """
    Decode a complete RLP document.

    Raises:
        RLPDecodingError: If the data is empty, malformed, non-canonical or has trailing bytes.
    """
    if not data:
        raise RLPDecodingError("Empty RLP data")

    item, end = _decode_at(data, 0)
    if end != len(data):
        raise RLPDecodingError(f"Trailing data: decoded {end} of {len(data)} bytes")
    return item


def decode_rlp_list(data: bytes) -> list[bytes]:
    """
    Decode RLP data that must be a flat list of byte strings.

    Block headers have this shape.

    Raises:
        RLPDecodingError: If the top-level item is not a list or any element is a list.
    """
    item = decode_rlp(data)
    if not isinstance(item, list):
        raise RLPDecodingError("Expected RLP list")

    for index, element in enumerate(item):
        if not isinstance(element, bytes):
            raise RLPDecodingError(f"Element {index} is a nested list")
    return item  # type: ignore[return-value]


def _decode_at(data: bytes, offset: int) -> tuple[RLPItem, int]:
    """Decode one item at `offset`. Returns the item and the offset after it."""
    if offset >= len(data):
        raise RLPDecodingError("Unexpected end of data")

    prefix = data[offset]

    if prefix < STRING_OFFSET:
        return data[offset : offset + 1], offset + 1

    is_list = prefix >= LIST_OFFSET
    base = LIST_OFFSET if is_list else STRING_OFFSET
    start, length = _read_length(data, offset, prefix - base)
    end = start + length
    if end > len(data):
        raise RLPDecodingError(f"Data too short: need {end}, have {len(data)}")

    if not is_list:
        payload = data[start:end]
        # A lone byte below 0x80 must be encoded as itself.
        if length == 1 and payload[0] < STRING_OFFSET:
            raise RLPDecodingError("Non-canonical: single byte wrapped in string prefix")
        return payload, end

    items: list[RLPItem] = []
    cursor = start
    while cursor < end:
        element, cursor = _decode_at(data, cursor)
        items.append(element)
    if cursor != end:
        raise RLPDecodingError("List payload length mismatch")
    return items, end


def _read_length(data: bytes, offset: int, code: int) -> tuple[int, int]:
    """
    Interpret the length part of a prefix.

    Returns the payload start offset and payload length.
    """
    if code <= SHORT_LIMIT:
        return offset + 1, code

    length_of_length = code - SHORT_LIMIT
    start = offset + 1
    end = start + length_of_length
    if end > len(data):
        raise RLPDecodingError(f"Data too short: need {end}, have {len(data)}")
    if data[start] == 0:
        raise RLPDecodingError("Non-canonical: leading zeros in length encoding")

    length = int.from_bytes(data[start:end], "big")
    if length <= SHORT_LIMIT:
        raise RLPDecodingError("Non-canonical: long form used for short payload")
    return end, length
