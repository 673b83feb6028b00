"""Table discovery for backup and restore.

Backup asks the database which tables exist and appends the configured
extra names.  Restore takes every entry of the backup directory as a
table name.  Failures here are enumeration-level and abort the batch.
"""

import os
from pathlib import Path

from db_snapshot.adapters.base import DatabaseClient
from db_snapshot.errors import DirectoryError, QueryError


async def list_backup_tables(
    client: DatabaseClient,
    extra_tables: list[str] | None = None,
) -> list[str]:
    """Table names to back up: database statistics, then ``extra_tables``.

    Duplicates are kept; a table listed twice is backed up twice.

    Raises:
        QueryError: If the statistics query fails.
    """
    try:
        stats = await client.stats()
    except Exception as e:
        raise QueryError(f"Cannot read database statistics: {e}") from e

    return list(stats.tables) + list(extra_tables or [])


def list_restore_tables(directory: str | Path) -> list[str]:
    """Table names to restore: every entry in the backup directory, sorted.

    A directory that does not exist yields no tables.

    Raises:
        DirectoryError: If the directory exists but cannot be listed.
    """
    try:
        return sorted(os.listdir(directory))
    except FileNotFoundError:
        return []
    except OSError as e:
        raise DirectoryError(f"Cannot list backup directory {directory}: {e}") from e

