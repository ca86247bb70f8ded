"""
Storage module for the header archive.

Provides a content-addressed, write-once store of block headers observed at
points of interest. Uses SQLite for simplicity and durability.
"""

from .database import HeaderStore
from .exceptions import (
    HeaderWriteError,
    InvariantViolationError,
    StorageError,
    StoreCorruptionError,
)
from .namespaces import HEADERS, HeaderNamespace
from .sqlite import SQLiteHeaderStore

__all__ = [
    "HeaderStore",
    "SQLiteHeaderStore",
    "HeaderNamespace",
    "HEADERS",
    "StorageError",
    "StoreCorruptionError",
    "InvariantViolationError",
    "HeaderWriteError",
]
