"""Chain data structures observed by the monitor."""

from .header import BlockHeader, HeaderDecodeError, keccak256

__all__ = [
    "BlockHeader",
    "HeaderDecodeError",
    "keccak256",
]
