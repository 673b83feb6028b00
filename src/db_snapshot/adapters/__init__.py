"""Database adapters package.

Provides the ``DatabaseClient`` Protocol, the statistics models it
returns, and the async PostgreSQL adapter.

Usage:
    from db_snapshot.adapters import DatabaseClient, AsyncPostgresAdapter
"""

from db_snapshot.adapters.base import DatabaseClient
from db_snapshot.adapters.models import DatabaseStats, TableStats
from db_snapshot.adapters.postgres import AsyncPostgresAdapter

__all__ = [
    "DatabaseClient",
    "DatabaseStats",
    "TableStats",
    "AsyncPostgresAdapter",
]
