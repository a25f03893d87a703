"""Database connection settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from sqlalchemy.engine import URL

from .env import require_env_vars
from .errors import ConfigurationError

DB_DRIVERNAME: Final[str] = "postgresql+psycopg2"
DB_ENV_VARS: Final[tuple[str, ...]] = (
    "DB_HOSTNAME",
    "DB_USERNAME",
    "DB_PASSWORD",
    "DB_DATABASE",
    "DB_PORT",
)


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str | URL


def get_database_config() -> DatabaseConfig:
    """Build the database URL from ``DB_*`` settings, honouring ``DATABASE_URI``."""

    env_uri = os.getenv("DATABASE_URI")
    if env_uri:
        return DatabaseConfig(uri=env_uri)

    values = require_env_vars(DB_ENV_VARS)
    try:
        port = int(values["DB_PORT"])
    except ValueError as exc:
        raise ConfigurationError(f"Invalid DB_PORT: {values['DB_PORT']}") from exc

    url = URL.create(
        DB_DRIVERNAME,
        username=values["DB_USERNAME"],
        password=values["DB_PASSWORD"],
        host=values["DB_HOSTNAME"],
        port=port,
        database=values["DB_DATABASE"],
        query={"sslmode": "disable"},
    )
    return DatabaseConfig(uri=url)
