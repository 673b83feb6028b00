"""Database client factory.

Resolves the active profile from an explicit name or the
``{env_prefix}DB_PROFILE`` environment variable, substitutes the
password placeholder, and builds the adapter for the profile's provider.

Usage:
    from db_snapshot.factory import get_adapter

    adapter = get_adapter(env_prefix="APP_")
    try:
        stats = await adapter.stats()
    finally:
        await adapter.close()
"""

import logging
import os
from urllib.parse import quote

from db_snapshot.adapters.base import DatabaseClient
from db_snapshot.adapters.postgres import AsyncPostgresAdapter
from db_snapshot.config.loader import load_db_config
from db_snapshot.config.models import DatabaseConfig, DatabaseProfile

logger = logging.getLogger(__name__)


class ProfileNotFoundError(Exception):
    """Raised when no database profile is configured or the name is unknown."""

    pass


def get_active_profile_name(
    profile_name: str | None = None,
    env_prefix: str = "",
) -> str:
    """Get active profile name.

    Priority:
    1. Explicit ``profile_name`` argument (``--profile`` on the CLI)
    2. ``{env_prefix}DB_PROFILE`` environment variable
    3. Raise ProfileNotFoundError

    Args:
        profile_name: Explicit profile name, if any.
        env_prefix: Prefix for the environment variable lookup.

    Returns:
        Profile name.

    Raises:
        ProfileNotFoundError: If no profile is configured.
    """
    if profile_name:
        return profile_name

    env_var = f"{env_prefix}DB_PROFILE"
    env_profile = os.environ.get(env_var)
    if env_profile:
        return env_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Pass --profile <name> or set {env_var}=<name>."
    )


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Example:
        >>> p = DatabaseProfile(url="postgresql://u:[YOUR-PASSWORD]@h/db", db_password="p@ss")
        >>> resolve_url(p)
        'postgresql://u:p%40ss@h/db'
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


def resolve_backup_directory(
    config: DatabaseConfig,
    env_prefix: str = "",
    override: str | None = None,
) -> str:
    """Pick the backup directory: explicit override, env var, then config."""
    if override:
        return override
    env_dir = os.environ.get(f"{env_prefix}DB_BACKUP_DIR")
    if env_dir:
        return env_dir
    return config.backup.directory


def get_adapter(
    profile_name: str | None = None,
    env_prefix: str = "",
    config: DatabaseConfig | None = None,
) -> DatabaseClient:
    """Build a database adapter for the active profile.

    Args:
        profile_name: Profile name from db.toml.  If None, uses the
            ``{env_prefix}DB_PROFILE`` environment variable.
        env_prefix: Prefix for environment variable lookup.
        config: Already-loaded configuration.  Loaded from ``./db.toml``
            when None.

    Returns:
        DatabaseClient instance (AsyncPostgresAdapter).

    Raises:
        ProfileNotFoundError: If no profile is selected or it is not in
            db.toml.
        ValueError: If the profile names an unsupported provider.
    """
    name = get_active_profile_name(profile_name, env_prefix=env_prefix)
    if config is None:
        config = load_db_config()

    if name not in config.profiles:
        available = ", ".join(config.profiles.keys()) or "(none)"
        raise ProfileNotFoundError(
            f"Profile '{name}' not found in db.toml. Available: {available}"
        )

    profile = config.profiles[name]
    if profile.provider != "postgres":
        raise ValueError(
            f"Unsupported provider '{profile.provider}' for profile '{name}' "
            f"(supported: postgres)"
        )

    logger.debug(f"Using database profile: {name}")
    return AsyncPostgresAdapter(
        database_url=resolve_url(profile),
        schema_name=config.backup.schema_name,
    )
