"""Error kinds raised by the header store."""

from __future__ import annotations


class StorageError(Exception):
    """
    Base class for fatal header store failures.

    Both subclasses mean the archive cannot be trusted. The process should
    report them to the operator and exit rather than continue monitoring.
    """


class StoreCorruptionError(StorageError):
    """
    Raised when the database is corrupt and recovery could not repair it.

    Attributes:
        path: The database file that failed to open.
    """

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Header store at {path} is corrupt and could not be recovered: {detail}")


class InvariantViolationError(StorageError):
    """
    Raised when the store fails to encode or decode its own data.

    Headers are validated before they reach the store, and the store never
    writes bytes it did not produce. A failure here means a broken invariant,
    not bad external input.
    """


class HeaderWriteError(Exception):
    """
    Raised when SQLite refuses a header write.

    Covers a full disk, a locked or read-only database file and similar I/O
    conditions. Unlike `StorageError` it is not fatal: the monitor skips that
    cycle's persistence and tries again on the next one.
    """

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Failed writing to header store at {path}: {detail}")
