"""Pydantic models returned by the database statistics capability."""

from pydantic import BaseModel, Field


class TableStats(BaseModel):
    """Shape information for one table.

    Example:
        >>> TableStats(count=3).size
        0
    """

    count: int = 0  # live row estimate
    size: int = 0  # bytes on disk, including indexes


class DatabaseStats(BaseModel):
    """Statistics for every table the database can enumerate."""

    tables: dict[str, TableStats] = Field(default_factory=dict)

    @property
    def size(self) -> int:
        """Total size of all enumerated tables in bytes."""
        return sum(t.size for t in self.tables.values())
