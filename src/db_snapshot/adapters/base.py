"""Database client protocol definition.

Defines the ``DatabaseClient`` Protocol that snapshot backup and restore
consume.  All methods are ``async def`` -- the library is async-first.

Usage:
    from db_snapshot.adapters.base import DatabaseClient

    async def do_work(client: DatabaseClient) -> None:
        stats = await client.stats()
        rows = await client.select("users", "*", filters={})
        await client.upsert("users", rows)
        await client.close()
"""

from typing import Any, Protocol

from db_snapshot.adapters.models import DatabaseStats


class DatabaseClient(Protocol):
    """Database client interface that all adapters must implement.

    Only three capabilities are needed by backup/restore: statistics (to
    discover table names), an unfiltered row fetch, and an
    insert-or-update write.

    All methods are async -- callers must ``await`` every operation.
    """

    async def stats(self) -> DatabaseStats:
        """Return table names and per-table shape information.

        Returns:
            ``DatabaseStats`` whose ``tables`` mapping is keyed by table
            name, in the order the database reports them.

        Example:
            stats = await client.stats()
            names = list(stats.tables)
        """
        ...

    async def select(
        self,
        table: str,
        columns: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict]:
        """Select rows from table.

        Args:
            table: Table name.
            columns: Comma-separated column names, or ``"*"``.
            filters: Optional dict of field=value filters (all must match
                via AND).  ``None`` or an empty dict selects every row.
            order_by: Optional column name to sort by.

        Returns:
            List of dicts, one per row.  Empty list if no matches.

        Example:
            rows = await client.select("users", "*", filters={})
        """
        ...

    async def upsert(self, table: str, rows: list[dict]) -> int:
        """Insert rows, updating any row whose primary key already exists.

        The key is the database's own primary key for ``table``; callers
        never name it.

        Args:
            table: Table name.
            rows: Row dicts to write.

        Returns:
            Number of rows written.

        Raises:
            Exception: If the write fails (constraint violation, unknown
                column, connection loss).

        Example:
            written = await client.upsert("users", [{"id": 1, "name": "Alice"}])
        """
        ...

    async def close(self) -> None:
        """Close database connection and clean up resources."""
        ...
