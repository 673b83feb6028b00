"""Pydantic models for database profiles and backup settings."""

from pydantic import BaseModel, Field


class DatabaseProfile(BaseModel):
    """Database connection profile from db.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    provider: str = "postgres"


class BackupSettings(BaseModel):
    """The ``[backup]`` section of db.toml.

    ``tables`` lists extra table names appended to the ones the database
    statistics report, for tables the statistics cannot enumerate.  Names
    are used verbatim as file names, so they must not contain path
    separators.
    """

    directory: str = "./data/dbm"
    tables: list[str] = Field(default_factory=list)
    schema_name: str = "public"


class DatabaseConfig(BaseModel):
    """Complete configuration from db.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    backup: BackupSettings = Field(default_factory=BackupSettings)
