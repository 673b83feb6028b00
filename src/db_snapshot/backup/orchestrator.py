"""Concurrent backup and restore across all tables.

``backup_database`` and ``restore_database`` enumerate tables, run the
per-table operation for every one of them at once, wait for all of them
(no early exit, nothing is cancelled), and return a ``BatchResult``.
Its ``message`` is the single status line shown to the user.

Usage:
    from db_snapshot.backup.orchestrator import backup_database, restore_database

    result = await backup_database(adapter, "./data/dbm", extra_tables=["UserSettings"])
    print(result.message)   # "Backed up users, orders, UserSettings"

    result = await restore_database(adapter, "./data/dbm")
    if not result.ok:
        ...
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from functools import partial
from pathlib import Path
from typing import Literal

from db_snapshot.adapters.base import DatabaseClient
from db_snapshot.backup.enumerator import list_backup_tables, list_restore_tables
from db_snapshot.backup.models import BatchResult, TableOutcome
from db_snapshot.backup.runner import backup_table, restore_table
from db_snapshot.backup.storage import ensure_directory
from db_snapshot.errors import SnapshotError

logger = logging.getLogger(__name__)

TableOperation = Callable[[str], Awaitable[TableOutcome]]


async def run_batch(tables: list[str], operation: TableOperation) -> list[TableOutcome]:
    """Run ``operation`` for every table concurrently and collect outcomes.

    Outcomes come back in the order of ``tables``.  An exception that
    escapes ``operation`` becomes a failed outcome for that table.
    """
    results = await asyncio.gather(
        *(operation(table) for table in tables),
        return_exceptions=True,
    )

    outcomes: list[TableOutcome] = []
    for table, result in zip(tables, results):
        if isinstance(result, BaseException):
            logger.warning(f"{table} failed: {result}")
            outcomes.append(TableOutcome.failure(table, str(result)))
        else:
            outcomes.append(result)
    return outcomes


def _finish(operation: Literal["backup", "restore"], outcomes: list[TableOutcome]) -> BatchResult:
    result = BatchResult(operation=operation, outcomes=outcomes)
    if result.ok:
        logger.info(result.message)
    else:
        logger.warning(result.message)
    return result


def _abort(operation: Literal["backup", "restore"], error: SnapshotError) -> BatchResult:
    logger.warning(f"{operation.capitalize()} failed: {error}")
    return BatchResult(operation=operation, error=str(error))


async def backup_database(
    client: DatabaseClient,
    directory: str | Path,
    extra_tables: list[str] | None = None,
) -> BatchResult:
    """Back up every table to its own snapshot file.

    Tables are the ones the database statistics report, followed by
    ``extra_tables``.  The backup directory is created if missing.

    Args:
        client: Database client.
        directory: Backup directory.
        extra_tables: Additional table names the statistics cannot
            enumerate.

    Returns:
        BatchResult; ``ok`` when at least one table was backed up.
    """
    try:
        ensure_directory(directory)
        tables = await list_backup_tables(client, extra_tables)
    except SnapshotError as e:
        return _abort("backup", e)

    logger.debug(f"Backing up {len(tables)} tables to {directory}")
    outcomes = await run_batch(tables, partial(backup_table, client, directory))
    return _finish("backup", outcomes)


async def restore_database(
    client: DatabaseClient,
    directory: str | Path,
) -> BatchResult:
    """Restore every snapshot file in the backup directory.

    Args:
        client: Database client.
        directory: Backup directory.

    Returns:
        BatchResult; ``ok`` when at least one table was restored.
    """
    try:
        tables = await asyncio.to_thread(list_restore_tables, directory)
    except SnapshotError as e:
        return _abort("restore", e)

    logger.debug(f"Restoring {len(tables)} tables from {directory}")
    outcomes = await run_batch(tables, partial(restore_table, client, directory))
    return _finish("restore", outcomes)
