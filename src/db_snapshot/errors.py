"""Exception hierarchy for snapshot backup and restore.

Per-table errors (everything carrying a ``table``) are raised by the
stages of a single table operation and converted into a failed
``TableOutcome`` at the runner boundary.  ``DirectoryError`` and a
statistics ``QueryError`` are enumeration-level: they abort the whole
batch.

Usage:
    from db_snapshot.errors import ParseError, SnapshotError

    try:
        rows = decode(data)
    except ParseError as e:
        logger.warning(f"Restore {e.table} failed: {e}")
"""


class SnapshotError(Exception):
    """Base class for all backup/restore failures.

    Args:
        message: Human-readable description of the failure.
        table: Table the failure belongs to, when it is a per-table error.
    """

    def __init__(self, message: str, table: str | None = None) -> None:
        super().__init__(message)
        self.table = table


class QueryError(SnapshotError):
    """Reading rows or statistics from the database failed."""

    pass


class EncodeError(SnapshotError):
    """A record set contains a value the codec cannot encode."""

    pass


class WriteError(SnapshotError):
    """Writing a snapshot file failed."""

    pass


class ReadError(SnapshotError):
    """A snapshot file exists but could not be read."""

    pass


class ParseError(SnapshotError):
    """Snapshot file content is malformed."""

    pass


class UpsertError(SnapshotError):
    """Writing restored rows back to the database failed."""

    pass


class DirectoryError(SnapshotError):
    """Creating or listing the backup directory failed."""

    pass
