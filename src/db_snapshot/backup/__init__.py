"""Per-table snapshot backup and restore.

Each table is written to its own file in the backup directory and
restored from it independently; tables are processed concurrently and
failures are isolated per table.

Usage:
    from db_snapshot.backup import backup_database, restore_database
    from db_snapshot.backup import decode, encode
"""

from db_snapshot.backup.codec import decode, encode
from db_snapshot.backup.models import BatchResult, TableOutcome
from db_snapshot.backup.orchestrator import backup_database, restore_database, run_batch
from db_snapshot.backup.runner import backup_table, restore_table
from db_snapshot.backup.storage import SnapshotInfo, ensure_directory, list_snapshots

__all__ = [
    "BatchResult",
    "TableOutcome",
    "SnapshotInfo",
    "backup_database",
    "restore_database",
    "run_batch",
    "backup_table",
    "restore_table",
    "encode",
    "decode",
    "ensure_directory",
    "list_snapshots",
]
