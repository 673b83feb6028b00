"""Backup directory handling.

One directory holds one snapshot file per table, named exactly as the
table.  Table names are joined verbatim except for leading path
separators, so an absolute name cannot replace the backup directory.
"""

import os
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel

from db_snapshot.errors import DirectoryError


class SnapshotInfo(BaseModel):
    """A snapshot file found in the backup directory."""

    table: str
    size: int
    modified: datetime


def ensure_directory(directory: str | Path) -> Path:
    """Create the backup directory and any missing ancestors.

    No-op when the directory already exists.

    Raises:
        DirectoryError: If the directory cannot be created (for example a
            regular file already occupies the path).
    """
    path = Path(directory)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryError(f"Cannot create backup directory {path}: {e}") from e
    return path


def snapshot_path(directory: str | Path, table: str) -> Path:
    """Path of the snapshot file for ``table``.

    An absolute table name is joined as if relative:

        >>> snapshot_path("data/dbm", "/x/victim")
        PosixPath('data/dbm/x/victim')
    """
    return Path(directory) / table.lstrip(os.sep)


def list_snapshots(directory: str | Path) -> list[SnapshotInfo]:
    """Describe every snapshot file in the backup directory, sorted by table.

    A missing directory has no snapshots.

    Raises:
        DirectoryError: If the directory exists but cannot be listed.
    """
    path = Path(directory)
    if not path.exists():
        return []

    try:
        entries = sorted(path.iterdir(), key=lambda p: p.name)
        snapshots = []
        for entry in entries:
            if not entry.is_file():
                continue
            st = entry.stat()
            snapshots.append(
                SnapshotInfo(
                    table=entry.name,
                    size=st.st_size,
                    modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
                )
            )
    except OSError as e:
        raise DirectoryError(f"Cannot list backup directory {path}: {e}") from e
    return snapshots
