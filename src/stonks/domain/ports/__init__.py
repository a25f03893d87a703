"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import (
    DocumentParseError,
    EarningsPage,
    EarningsPageFetcher,
    FetchError,
    RequestFailedError,
    UnexpectedStatusError,
)
from .log_sink import LogSink, LogSinkError
from .persistence import (
    EarningsDateRepository,
    LogRepository,
    PersistenceError,
    StockRepository,
)
from .unit_of_work import (
    EarningsRepositories,
    EarningsUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "DocumentParseError",
    "EarningsDateRepository",
    "EarningsPage",
    "EarningsPageFetcher",
    "EarningsRepositories",
    "EarningsUnitOfWork",
    "FetchError",
    "LogRepository",
    "LogSink",
    "LogSinkError",
    "PersistenceError",
    "RepositoryCollection",
    "RequestFailedError",
    "StockRepository",
    "UnexpectedStatusError",
    "UnitOfWork",
]
