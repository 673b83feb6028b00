"""CLI for per-table database backup and restore.

Usage:
    DB_PROFILE=local db-snapshot backup
    db-snapshot --profile local backup --table UserSettings
    db-snapshot --profile local restore
    db-snapshot --profile local restore --confirm
    db-snapshot snapshots
    db-snapshot profiles

Commands:
    backup     - Back up every table to its own snapshot file
    restore    - Restore every snapshot file into the database (needs --confirm)
    snapshots  - List snapshot files in the backup directory
    profiles   - List available profiles
"""

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from db_snapshot.backup.models import BatchResult
from db_snapshot.backup.orchestrator import backup_database, restore_database
from db_snapshot.backup.storage import list_snapshots
from db_snapshot.config.loader import load_db_config
from db_snapshot.config.models import DatabaseConfig
from db_snapshot.errors import DirectoryError
from db_snapshot.factory import (
    ProfileNotFoundError,
    get_adapter,
    resolve_backup_directory,
)

console = Console()


# ============================================================================
# Helpers
# ============================================================================


def _configure_logging(verbose: bool) -> None:
    """Route log records through rich; library loggers stay at WARNING."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    logging.getLogger("db_snapshot").setLevel(logging.DEBUG if verbose else logging.INFO)


def _load_config(args: argparse.Namespace) -> DatabaseConfig | None:
    """Load db.toml, printing the error and returning None on failure."""
    try:
        return load_db_config(getattr(args, "config", None))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return None


def _format_size(size: int) -> str:
    """Human-readable byte count.

    Example:
        >>> _format_size(2048)
        '2.0 KB'
    """
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def _print_result(result: BatchResult) -> None:
    """Print the aggregate status line and any per-table failures."""
    console.print()
    if result.ok:
        console.print(f"[bold green]v[/bold green] {escape(result.message)}")
    else:
        console.print(f"[bold red]x[/bold red] {escape(result.message)}")
        if result.error:
            console.print(f"  [red]{escape(result.error)}[/red]")

    if result.failed:
        table = Table(title="Failed tables", show_header=True, header_style="bold")
        table.add_column("Table", style="dim")
        table.add_column("Error")
        for outcome in result.failed:
            table.add_row(escape(outcome.table), escape(outcome.error or ""))
        console.print(table)


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_backup(args: argparse.Namespace) -> int:
    """Async implementation for backup command.

    Args:
        args: Parsed arguments with config, profile, env_prefix, directory
            and tables.

    Returns:
        0 when at least one table was backed up, 1 otherwise.
    """
    env_prefix = getattr(args, "env_prefix", "")

    config = _load_config(args)
    if config is None:
        return 1

    directory = resolve_backup_directory(config, env_prefix, args.directory)
    extra_tables = config.backup.tables + (args.tables or [])

    try:
        adapter = get_adapter(args.profile, env_prefix=env_prefix, config=config)
    except (ProfileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    console.print(f"Backing up to [bold]{escape(directory)}[/bold]...", style="dim")
    try:
        result = await backup_database(adapter, directory, extra_tables)
    finally:
        await adapter.close()

    _print_result(result)
    return 0 if result.ok else 1


async def _async_restore(args: argparse.Namespace) -> int:
    """Async implementation for restore command.

    Without ``--confirm`` only lists the snapshots that would be restored.

    Args:
        args: Parsed arguments with config, profile, env_prefix, directory
            and confirm.

    Returns:
        0 when at least one table was restored (or on a preview), 1
        otherwise.
    """
    env_prefix = getattr(args, "env_prefix", "")

    config = _load_config(args)
    if config is None:
        return 1

    directory = resolve_backup_directory(config, env_prefix, args.directory)

    if not args.confirm:
        if _print_snapshots(directory) != 0:
            return 1
        console.print()
        console.print(
            "[dim]Restore overwrites matching rows. To restore, add[/dim] "
            "[cyan]--confirm[/cyan] [dim]flag.[/dim]"
        )
        return 0

    try:
        adapter = get_adapter(args.profile, env_prefix=env_prefix, config=config)
    except (ProfileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    console.print(f"Restoring from [bold]{escape(directory)}[/bold]...", style="dim")
    try:
        result = await restore_database(adapter, directory)
    finally:
        await adapter.close()

    _print_result(result)
    return 0 if result.ok else 1


def _print_snapshots(directory: str) -> int:
    """Print a table of snapshot files in ``directory``."""
    try:
        snapshots = list_snapshots(directory)
    except DirectoryError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    if not snapshots:
        console.print(f"[yellow]No snapshots in {escape(directory)}[/yellow]")
        return 0

    table = Table(
        title=f"Snapshots in {escape(directory)}", show_header=True, header_style="bold"
    )
    table.add_column("Table")
    table.add_column("Size", justify="right")
    table.add_column("Modified (UTC)", style="dim")

    for snapshot in snapshots:
        table.add_row(
            escape(snapshot.table),
            _format_size(snapshot.size),
            snapshot.modified.strftime("%Y-%m-%d %H:%M:%S"),
        )

    console.print(table)
    return 0


# ============================================================================
# Command handlers
# ============================================================================


def cmd_backup(args: argparse.Namespace) -> int:
    """Back up every table.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_backup(args))


def cmd_restore(args: argparse.Namespace) -> int:
    """Restore every snapshot file.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_restore(args))


def cmd_snapshots(args: argparse.Namespace) -> int:
    """List snapshot files in the backup directory.

    Reads only local files, no database calls.
    """
    config = _load_config(args)
    if config is None:
        return 1

    directory = resolve_backup_directory(
        config, getattr(args, "env_prefix", ""), args.directory
    )
    return _print_snapshots(directory)


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from db.toml.

    Reads only local TOML config, no database calls.

    Returns:
        0 on success, 1 if db.toml not found.
    """
    config = _load_config(args)
    if config is None:
        return 1

    table = Table(
        title="Database Profiles", show_header=True, header_style="bold"
    )
    table.add_column("Profile")
    table.add_column("Provider")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        table.add_row(escape(name), profile.provider, escape(profile.description or ""))

    console.print(table)
    return 0


# ============================================================================
# Main entry point
# ============================================================================


def main() -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="db-snapshot",
        description="Per-table database backup and restore",
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to db.toml (default: ./db.toml)",
    )
    parser.add_argument(
        "--profile",
        "-p",
        default=None,
        help="Profile from db.toml (default: $DB_PROFILE)",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_PROFILE)"
        ),
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log per-table progress",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # backup command
    p_backup = subparsers.add_parser(
        "backup",
        help="Back up every table to its own snapshot file",
    )
    p_backup.add_argument(
        "--directory",
        "-d",
        default=None,
        help="Backup directory (default: [backup] directory in db.toml)",
    )
    p_backup.add_argument(
        "--table",
        "-t",
        action="append",
        dest="tables",
        help="Extra table to back up (can be used multiple times)",
    )
    p_backup.set_defaults(func=cmd_backup)

    # restore command
    p_restore = subparsers.add_parser(
        "restore",
        help="Restore every snapshot file into the database",
    )
    p_restore.add_argument(
        "--directory",
        "-d",
        default=None,
        help="Backup directory (default: [backup] directory in db.toml)",
    )
    p_restore.add_argument(
        "--confirm",
        action="store_true",
        help="Actually write to the database",
    )
    p_restore.set_defaults(func=cmd_restore)

    # snapshots command
    p_snapshots = subparsers.add_parser(
        "snapshots",
        help="List snapshot files in the backup directory",
    )
    p_snapshots.add_argument(
        "--directory",
        "-d",
        default=None,
        help="Backup directory (default: [backup] directory in db.toml)",
    )
    p_snapshots.set_defaults(func=cmd_snapshots)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List available profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    args = parser.parse_args()
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
