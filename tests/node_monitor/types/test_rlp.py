"""Tests for the RLP codec."""

from __future__ import annotations

import pytest

from node_monitor.types import (
    RLPDecodingError,
    RLPEncodingError,
    decode_rlp,
    decode_rlp_list,
    encode_rlp,
)


class TestEncoding:
    """Tests for known RLP encodings from the Ethereum documentation."""

    @pytest.mark.parametrize(
        ("item", "expected"),
        [
            (b"", "80"),
            (b"\x00", "00"),
            (b"\x0f", "0f"),
            (b"\x80", "8180"),
            (b"\x04\x00", "820400"),
            (b"dog", "83646f67"),
            ([], "c0"),
            ([b"cat", b"dog"], "c88363617483646f67"),
            ([[], [[]], [[], [[]]]], "c7c0c1c0c3c0c1c0"),
        ],
    )
    def test_known_vectors(self, item: object, expected: str) -> None:
        """Encodings match the published reference vectors."""
        assert encode_rlp(item).hex() == expected  # type: ignore[arg-type]

    def test_long_string_uses_length_of_length(self) -> None:
        """Strings over 55 bytes carry their length in extra bytes."""
        data = b"x" * 56
        encoded = encode_rlp(data)

        assert encoded[:2] == b"\xb8\x38"
        assert encoded[2:] == data

    def test_long_list_prefix(self) -> None:
        """Lists whose payload exceeds 55 bytes use the long list prefix."""
        encoded = encode_rlp([b"a" * 30, b"b" * 30])

        assert encoded[0] == 0xF8
        assert encoded[1] == 62

    def test_rejects_non_bytes(self) -> None:
        """Only bytes and lists can be encoded."""
        with pytest.raises(RLPEncodingError):
            encode_rlp(5)  # type: ignore[arg-type]

        with pytest.raises(RLPEncodingError):
            encode_rlp([b"ok", "text"])  # type: ignore[list-item]


class TestDecoding:
    """Tests for strict canonical decoding."""

    def test_decodes_nested_structure(self) -> None:
        """Nested lists decode back to the original structure."""
        item = [b"cat", [b"dog", b""], b"\x01"]
        assert decode_rlp(encode_rlp(item)) == item  # type: ignore[arg-type]

    def test_long_string(self) -> None:
        """A long string decodes to its payload."""
        data = bytes(range(200))
        assert decode_rlp(encode_rlp(data)) == data

    @pytest.mark.parametrize(
        ("data", "reason"),
        [
            (b"", "Empty"),
            (b"\x81\x05", "single byte"),
            (b"\xb8\x05hello", "long form"),
            (b"\xb9\x00\x38" + b"x" * 56, "leading zeros"),
            (b"\x83do", "too short"),
            (b"\x80\x80", "Trailing"),
            (b"\xc3\x83dog", "mismatch"),
        ],
    )
    def test_rejects_non_canonical(self, data: bytes, reason: str) -> None:
        """Every non-canonical or malformed input is rejected."""
        with pytest.raises(RLPDecodingError, match=reason):
            decode_rlp(data)


class TestDecodeList:
    """Tests for flat list decoding used by block headers."""

    def test_flat_list(self) -> None:
        """A flat list of strings decodes to its elements."""
        assert decode_rlp_list(encode_rlp([b"a", b"", b"xyz"])) == [b"a", b"", b"xyz"]

    def test_rejects_string(self) -> None:
        """A top-level string is not a list."""
        with pytest.raises(RLPDecodingError, match="Expected RLP list"):
            decode_rlp_list(encode_rlp(b"dog"))

    def test_rejects_nested_list(self) -> None:
        """Nested lists do not describe a header."""
        with pytest.raises(RLPDecodingError, match="nested list"):
            decode_rlp_list(encode_rlp([b"a", [b"b"]]))
