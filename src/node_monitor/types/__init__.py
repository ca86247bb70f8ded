"""Reusable type definitions for the node monitor."""

from .base import CamelModel, StrictBaseModel
from .byte_arrays import ZERO_HASH, BaseBytes, Bytes8, Bytes20, Bytes32, Bytes256
from .rlp import (
    RLPDecodingError,
    RLPEncodingError,
    RLPError,
    RLPItem,
    decode_rlp,
    decode_rlp_list,
    encode_rlp,
)
from .uint import BaseUint, Uint64, Uint256

__all__ = [
    # Integers
    "BaseUint",
    "Uint64",
    "Uint256",
    # Byte arrays
    "BaseBytes",
    "Bytes8",
    "Bytes20",
    "Bytes32",
    "Bytes256",
    "ZERO_HASH",
    # Models
    "CamelModel",
    "StrictBaseModel",
    # RLP
    "RLPItem",
    "encode_rlp",
    "decode_rlp",
    "decode_rlp_list",
    "RLPError",
    "RLPEncodingError",
    "RLPDecodingError",
]
