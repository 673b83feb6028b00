"""Outcome models for per-table operations and whole batches.

Usage:
    from db_snapshot.backup.models import BatchResult, TableOutcome

    result = BatchResult(
        operation="backup",
        outcomes=[
            TableOutcome(table="users", succeeded=True),
            TableOutcome(table="orders", succeeded=False, error="connection reset"),
        ],
    )
    result.message  # 'Backed up users'
"""

from typing import Literal

from pydantic import BaseModel, Field

SEPARATOR = ", "

SUCCESS_PREFIX = {"backup": "Backed up", "restore": "Restored"}
FAILURE_MESSAGE = {
    "backup": "Backup failed, check the logs",
    "restore": "Restore failed, check the logs",
}


class TableOutcome(BaseModel):
    """Result of one backup or restore for one table."""

    table: str
    succeeded: bool
    error: str | None = None  # for logging only

    @classmethod
    def success(cls, table: str) -> "TableOutcome":
        return cls(table=table, succeeded=True)

    @classmethod
    def failure(cls, table: str, error: str) -> "TableOutcome":
        return cls(table=table, succeeded=False, error=error)


class BatchResult(BaseModel):
    """Outcomes of one batch, in enumeration order.

    ``error`` is set when the batch was aborted before any table ran
    (directory or statistics failure); ``outcomes`` is then empty.

    Example:
        >>> BatchResult(operation="restore").message
        'Restore failed, check the logs'
    """

    operation: Literal["backup", "restore"]
    outcomes: list[TableOutcome] = Field(default_factory=list)
    error: str | None = None

    @property
    def succeeded(self) -> list[str]:
        """Names of tables that succeeded, in enumeration order."""
        return [o.table for o in self.outcomes if o.succeeded]

    @property
    def failed(self) -> list[TableOutcome]:
        """Outcomes of tables that failed, in enumeration order."""
        return [o for o in self.outcomes if not o.succeeded]

    @property
    def ok(self) -> bool:
        """True when at least one table succeeded."""
        return any(o.succeeded for o in self.outcomes)

    @property
    def message(self) -> str:
        """Aggregate status line for the caller.

        Partial success still reads as success, listing only the tables
        that made it.
        """
        if self.ok:
            return f"{SUCCESS_PREFIX[self.operation]} {SEPARATOR.join(self.succeeded)}"
        return FAILURE_MESSAGE[self.operation]
