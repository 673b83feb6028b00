"""Backup and restore of a single table.

Each operation runs its stages (database call, codec, file I/O), turns a
failing stage into the matching ``SnapshotError`` subclass, and catches
it at the function boundary.  The caller always gets a ``TableOutcome``
back, never an exception.

File I/O runs in a worker thread.
"""

import asyncio
import logging
from pathlib import Path

from db_snapshot.adapters.base import DatabaseClient
from db_snapshot.backup.codec import decode, encode
from db_snapshot.backup.models import TableOutcome
from db_snapshot.backup.storage import snapshot_path
from db_snapshot.errors import (
    EncodeError,
    ParseError,
    QueryError,
    ReadError,
    SnapshotError,
    UpsertError,
    WriteError,
)

logger = logging.getLogger(__name__)


async def backup_table(
    client: DatabaseClient,
    directory: str | Path,
    table: str,
) -> TableOutcome:
    """Write every row of ``table`` to its snapshot file.

    The snapshot file is replaced, not appended to.  Nothing is written
    when the query or the encoding fails, or when the table name would
    put the file anywhere but directly inside ``directory``.

    Args:
        client: Database client to read rows from.
        directory: Backup directory; must already exist.
        table: Table name, also the snapshot file name.

    Returns:
        Succeeded outcome, or failed outcome carrying the error message.
    """
    path = snapshot_path(directory, table)
    try:
        try:
            rows = await client.select(table, "*", filters={})
        except Exception as e:
            raise QueryError(str(e), table=table) from e

        try:
            data = encode(rows)
        except EncodeError as e:
            raise EncodeError(str(e), table=table) from e

        try:
            if path.parent.resolve() != Path(directory).resolve():
                raise WriteError(f"Snapshot path {path} is outside {directory}", table=table)
            await asyncio.to_thread(path.write_bytes, data)
        except (OSError, ValueError) as e:
            raise WriteError(str(e), table=table) from e
    except SnapshotError as e:
        logger.warning(f"Backup {table} failed: {e}")
        return TableOutcome.failure(table, str(e))

    logger.debug(f"Backed up {table}: {len(rows)} rows -> {path}")
    return TableOutcome.success(table)


async def restore_table(
    client: DatabaseClient,
    directory: str | Path,
    table: str,
) -> TableOutcome:
    """Upsert the rows of ``table``'s snapshot file back into the database.

    A missing snapshot file is a skip: the outcome is failed but no
    warning is logged and the database is not touched.

    Args:
        client: Database client to write rows to.
        directory: Backup directory.
        table: Table name, also the snapshot file name.

    Returns:
        Succeeded outcome, or failed outcome carrying the error message.
    """
    path = snapshot_path(directory, table)
    if not path.exists():
        logger.debug(f"No snapshot for {table} at {path}, skipping")
        return TableOutcome.failure(table, f"Snapshot not found: {path}")

    try:
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise ReadError(str(e), table=table) from e

        try:
            rows = decode(data)
        except ParseError as e:
            raise ParseError(str(e), table=table) from e

        try:
            await client.upsert(table, rows)
        except Exception as e:
            raise UpsertError(str(e), table=table) from e
    except SnapshotError as e:
        logger.warning(f"Restore {table} failed: {e}")
        return TableOutcome.failure(table, str(e))

    logger.debug(f"Restored {table}: {len(rows)} rows <- {path}")
    return TableOutcome.success(table)
