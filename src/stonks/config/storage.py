"""Local log file and retention settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DEFAULT_LOG_FILENAME: Final[str] = "log.txt"
DEFAULT_LOG_CAPACITY: Final[int] = 1000


@dataclass(frozen=True, slots=True)
class LocalLogConfig:
    path: Path
    capacity: int = DEFAULT_LOG_CAPACITY

    def resolve_path(self) -> Path:
        return self.path.expanduser().resolve()


@dataclass(frozen=True, slots=True)
class LogRetentionConfig:
    """Row cap of the persistent log table and the error circuit breaker threshold."""

    capacity: int = DEFAULT_LOG_CAPACITY
    max_error_entries: int = 9


def get_local_log_config() -> LocalLogConfig:
    env_path = os.getenv("STONKS_LOG_FILE")
    path = Path(env_path) if env_path else Path.cwd() / DEFAULT_LOG_FILENAME
    return LocalLogConfig(path=path)


def get_log_retention_config() -> LogRetentionConfig:
    return LogRetentionConfig()
