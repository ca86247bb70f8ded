"""
SQLite implementation of the header store.

Headers are stored as canonical RLP bytes in a single table keyed by block
hash. The store is write-once: the first header written under a hash wins and
is never replaced.

Corruption Recovery
-------------------
The archive outlives any single run of the monitor, so it has to survive
crashes and bad disks. Opening runs SQLite's `quick_check`. When the check
fails (or the file is not a database at all):

1. The damaged file is moved aside to `<path>.corrupt`.
2. A fresh database is created at the original path.
3. Every row that can still be read and decoded is copied over.

Only when this recovery itself fails does the caller see an error.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Final

from node_monitor.chain import BlockHeader
from node_monitor.types import Bytes32, RLPError

from .exceptions import HeaderWriteError, InvariantViolationError, StoreCorruptionError
from .namespaces import HEADERS

logger = logging.getLogger(__name__)

MEMORY_PATH: Final = ":memory:"
"""Special path for a throwaway in-memory database."""

_SIDECAR_SUFFIXES: Final = ("-journal", "-wal", "-shm")
"""Files SQLite keeps next to the database. They move with it during recovery."""


class SQLiteHeaderStore:
    """
    SQLite implementation of the HeaderStore protocol.

    Single writer (the monitor loop). SQLite's locking keeps concurrent
    readers safe.
    """

    def __init__(self, path: Path | str) -> None:
        """
        Open (and if needed recover) the header store.

        Args:
            path: Path to SQLite database file.
                  Use ":memory:" for in-memory database.

        Raises:
            StoreCorruptionError: If the file is corrupt and recovery failed.
        """
        self._path = Path(path) if isinstance(path, str) else path
        self._conn = self._open()

    @property
    def path(self) -> Path:
        """Location of the database file."""
        return self._path

    # -------------------------------------------------------------------------
    # Opening and recovery
    # -------------------------------------------------------------------------

    def _open(self) -> sqlite3.Connection:
        """Connect, verify integrity, and fall back to recovery."""
        if str(self._path) == MEMORY_PATH:
            return _connect(self._path)

        try:
            conn = _connect(self._path)
        except sqlite3.DatabaseError as e:
            logger.warning(
                "Header store %s failed to open (%s), attempting recovery", self._path, e
            )
            return self._recover()

        try:
            _check_integrity(conn)
        except sqlite3.DatabaseError as e:
            conn.close()
            logger.warning("Header store %s is corrupt (%s), attempting recovery", self._path, e)
            return self._recover()
        return conn

    def _recover(self) -> sqlite3.Connection:
        """
        Rebuild the database from whatever rows survive.

        Raises:
            StoreCorruptionError: If the damaged file cannot be moved aside
                or the rebuilt database fails its own integrity check.
        """
        corrupt = self._path.with_name(self._path.name + ".corrupt")
        try:
            self._path.replace(corrupt)
            for suffix in _SIDECAR_SUFFIXES:
                sidecar = self._path.with_name(self._path.name + suffix)
                if sidecar.exists():
                    sidecar.replace(corrupt.with_name(corrupt.name + suffix))

            conn = _connect(self._path)
            salvaged = _salvage(corrupt, conn)
            _check_integrity(conn)
        except (OSError, sqlite3.Error) as e:
            raise StoreCorruptionError(str(self._path), str(e)) from e

        logger.warning(
            "Recovered header store %s: salvaged %d headers, damaged copy kept at %s",
            self._path,
            salvaged,
            corrupt,
        )
        return conn

    # -------------------------------------------------------------------------
    # Header operations
    # -------------------------------------------------------------------------

    def add(self, block_hash: Bytes32, header: BlockHeader) -> None:
        """
        Store a header unless its hash is already present.

        Raises:
            InvariantViolationError: If the header cannot be encoded.
            HeaderWriteError: If SQLite rejects the write.
        """
        try:
            if self.has(block_hash):
                return

            try:
                data = header.encode_rlp()
            except (RLPError, TypeError, ValueError) as e:
                raise InvariantViolationError(
                    f"Failed encoding header {block_hash.to_hex()}: {e}"
                ) from e

            # INSERT OR IGNORE keeps the first write even if a row appeared
            # between the existence check and this statement.
            self._conn.execute(
                f"""
                INSERT OR IGNORE INTO {HEADERS.TABLE_NAME} (hash, number, data)
                VALUES (?, ?, ?)
                """,
                (bytes(block_hash), int(header.number), data),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise HeaderWriteError(str(self._path), str(e)) from e

    def get(self, block_hash: Bytes32) -> BlockHeader | None:
        """Retrieve a header by hash."""
        cursor = self._conn.execute(
            f"SELECT data FROM {HEADERS.TABLE_NAME} WHERE hash = ?",
            (bytes(block_hash),),
        )
        row = cursor.fetchone()
        if row is None:
            return None

        try:
            return BlockHeader.decode_rlp(row["data"])
        except (RLPError, ValueError) as e:
            raise InvariantViolationError(
                f"Failed decoding stored header {block_hash.to_hex()}: {e}"
            ) from e

    def has(self, block_hash: Bytes32) -> bool:
        """Check if a header exists in storage."""
        cursor = self._conn.execute(
            f"SELECT 1 FROM {HEADERS.TABLE_NAME} WHERE hash = ?",
            (bytes(block_hash),),
        )
        return cursor.fetchone() is not None

    def __len__(self) -> int:
        """Number of stored headers."""
        cursor = self._conn.execute(f"SELECT COUNT(*) FROM {HEADERS.TABLE_NAME}")
        return int(cursor.fetchone()[0])

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close database connection."""
        self._conn.close()

    def __enter__(self) -> SQLiteHeaderStore:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()


def _connect(path: Path) -> sqlite3.Connection:
    """
    Open a connection and make sure the schema exists.

    Raises:
        sqlite3.DatabaseError: If the file is not a usable database.
    """
    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    try:
        conn.execute(HEADERS.CREATE_TABLE)
        conn.execute(HEADERS.CREATE_INDEX)
        conn.commit()
    except sqlite3.DatabaseError:
        conn.close()
        raise
    return conn


def _check_integrity(conn: sqlite3.Connection) -> None:
    """
    Run SQLite's quick integrity check.

    Raises:
        sqlite3.DatabaseError: If the check reports any problem.
    """
    rows = conn.execute("PRAGMA quick_check").fetchall()
    problems = [row[0] for row in rows if row[0] != "ok"]
    if problems:
        raise sqlite3.DatabaseError("; ".join(problems[:5]))


def _salvage(source: Path, target: sqlite3.Connection) -> int:
    """
    Copy every readable, decodable row from a damaged database.

    Reading stops at the first unreadable page. Rows whose bytes no longer
    decode as a header are dropped.

    Returns:
        Number of headers copied.
    """
    copied = 0
    try:
        src = sqlite3.connect(f"{source.resolve().as_uri()}?mode=ro", uri=True)
    except sqlite3.Error as e:
        logger.warning("Cannot read damaged header store %s: %s", source, e)
        return 0

    try:
        cursor = src.execute(f"SELECT hash, number, data FROM {HEADERS.TABLE_NAME}")
        for block_hash, number, data in cursor:
            try:
                BlockHeader.decode_rlp(data)
            except (RLPError, ValueError, TypeError):
                logger.debug("Dropping undecodable header row during recovery")
                continue
            target.execute(
                f"INSERT OR IGNORE INTO {HEADERS.TABLE_NAME} (hash, number, data) VALUES (?, ?, ?)",
                (block_hash, number, data),
            )
            copied += 1
    except sqlite3.DatabaseError as e:
        logger.warning("Salvage of %s stopped early: %s", source, e)
    finally:
        src.close()

    target.commit()
    return copied
