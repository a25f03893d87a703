"""SQLAlchemy adapter package for stonks."""

from __future__ import annotations

from .mappings import (
    create_all_tables,
    earnings_date_table,
    log_table,
    mapper_registry,
    start_mappers,
    stock_table,
)
from .repositories import (
    SqlAlchemyEarningsDateRepository,
    SqlAlchemyLogRepository,
    SqlAlchemyStockRepository,
    translate_errors,
)
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyEarningsDateRepository",
    "SqlAlchemyLogRepository",
    "SqlAlchemyStockRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "earnings_date_table",
    "is_started",
    "log_table",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
    "stock_table",
]
