"""Domain model for the earnings-date watcher."""

from __future__ import annotations

from .entities import EarningsDate, LogEntry, Stock, utcnow
from .enums import Exchange, LogLevel

__all__ = [
    "EarningsDate",
    "Exchange",
    "LogEntry",
    "LogLevel",
    "Stock",
    "utcnow",
]
