"""
Database namespace definitions for storage tables.

Defines table names and schema constants for SQLite storage.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class HeaderNamespace:
    """
    Namespace for header storage.

    Headers are stored by block hash as canonical RLP bytes.
    The number column is informational and indexed for manual inspection.
    """

    TABLE_NAME: str = "headers"
    """Table name for header storage."""

    CREATE_TABLE: str = """
        CREATE TABLE IF NOT EXISTS headers (
            hash BLOB PRIMARY KEY,
            number INTEGER NOT NULL,
            data BLOB NOT NULL
        )
    """
    """SQL to create headers table."""

    CREATE_INDEX: str = """
        CREATE INDEX IF NOT EXISTS idx_headers_number ON headers(number)
    """
    """SQL to create number index."""


HEADERS = HeaderNamespace()
