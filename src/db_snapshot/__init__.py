"""db-snapshot: per-table database backup and restore to plain files.

Backs up every table of a database to its own JSON snapshot file, and
restores those files back with insert-or-update semantics.  Tables are
processed concurrently; one failing table never stops the others.

Usage:
    from db_snapshot import AsyncPostgresAdapter, backup_database, restore_database
    from db_snapshot import load_db_config, get_adapter
"""

__version__ = "0.1.0"

# Adapters
from db_snapshot.adapters.base import DatabaseClient
from db_snapshot.adapters.models import DatabaseStats, TableStats
from db_snapshot.adapters.postgres import AsyncPostgresAdapter

# Backup / restore
from db_snapshot.backup.models import BatchResult, TableOutcome
from db_snapshot.backup.orchestrator import backup_database, restore_database

# Config
from db_snapshot.config.loader import load_db_config
from db_snapshot.config.models import BackupSettings, DatabaseConfig, DatabaseProfile

# Errors
from db_snapshot.errors import (
    DirectoryError,
    EncodeError,
    ParseError,
    QueryError,
    ReadError,
    SnapshotError,
    UpsertError,
    WriteError,
)

# Factory
from db_snapshot.factory import ProfileNotFoundError, get_adapter, resolve_url

__all__ = [
    # Adapters
    "DatabaseClient",
    "DatabaseStats",
    "TableStats",
    "AsyncPostgresAdapter",
    # Backup / restore
    "BatchResult",
    "TableOutcome",
    "backup_database",
    "restore_database",
    # Config
    "load_db_config",
    "BackupSettings",
    "DatabaseConfig",
    "DatabaseProfile",
    # Errors
    "SnapshotError",
    "QueryError",
    "EncodeError",
    "WriteError",
    "ReadError",
    "ParseError",
    "UpsertError",
    "DirectoryError",
    # Factory
    "get_adapter",
    "ProfileNotFoundError",
    "resolve_url",
]
