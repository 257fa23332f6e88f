"""Configuration management for mssql2mysql."""

import os
from dataclasses import dataclass
from typing import Optional

from mssql2mysql.exceptions import ConfigError

SOURCE_DSN_ENV = "MSSQLSERVER_DSN"
DESTINATION_DSN_ENV = "MYSQLSERVER_DSN"


@dataclass
class Config:
    """Configuration for one migration run."""

    source_dsn: Optional[str] = None
    destination_dsn: Optional[str] = None
    literal_sql: bool = False
    strict: bool = False

    @classmethod
    def from_env(
        cls,
        *,
        source_dsn: Optional[str] = None,
        destination_dsn: Optional[str] = None,
        literal_sql: bool = False,
        strict: bool = False,
    ) -> "Config":
        """Load configuration from env vars, with CLI overrides.

        Priority (highest to lowest):
        1. Explicit parameters (CLI args)
        2. Environment variables (MSSQLSERVER_DSN, MYSQLSERVER_DSN)
        """

        def resolve(explicit, env_key):
            if explicit:
                return explicit
            return os.environ.get(env_key) or None

        return cls(
            source_dsn=resolve(source_dsn, SOURCE_DSN_ENV),
            destination_dsn=resolve(destination_dsn, DESTINATION_DSN_ENV),
            literal_sql=literal_sql,
            strict=strict,
        )

    def validate_for_migration(self) -> None:
        """Validate that both connection strings are present.

        Raises:
            ConfigError: If either connection string is missing.
        """
        missing = []
        if not self.source_dsn:
            missing.append(f"source connection string (argument or {SOURCE_DSN_ENV})")
        if not self.destination_dsn:
            missing.append(
                f"destination connection string (argument or {DESTINATION_DSN_ENV})"
            )

        if missing:
            raise ConfigError(
                "Missing required configuration:\n  - " + "\n  - ".join(missing)
            )
