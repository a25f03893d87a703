"""Application configuration helpers."""

from __future__ import annotations

from .database import DatabaseConfig, get_database_config
from .env import require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .scheduler import SchedulerConfig, get_scheduler_config
from .storage import (
    LocalLogConfig,
    LogRetentionConfig,
    get_local_log_config,
    get_log_retention_config,
)
from .yahoo import YahooConfig, get_yahoo_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "LocalLogConfig",
    "LogRetentionConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SchedulerConfig",
    "YahooConfig",
    "configure_logging",
    "get_database_config",
    "get_local_log_config",
    "get_log_retention_config",
    "get_scheduler_config",
    "get_yahoo_config",
    "require_env_vars",
]
