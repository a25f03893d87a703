"""Plain domain records mapped imperatively by the storage adapter."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from .enums import Exchange, LogLevel


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(eq=False, kw_only=True)
class Stock:
    """A tracked ticker. Seeded externally and never deleted by the scraper."""

    id: int | None = None
    ticker: str
    exchange: Exchange
    company_name: str | None = None
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def rename(self, company_name: str) -> None:
        self.company_name = company_name

    def deactivate(self) -> None:
        self.is_active = False

    def touch(self, at: datetime) -> None:
        self.updated_at = at


@dataclass(eq=False, kw_only=True)
class EarningsDate:
    """One announced earnings instant (UTC) for a stock."""

    id: int | None = None
    stock_id: int
    earnings_datetime: datetime


@dataclass(eq=False, kw_only=True)
class LogEntry:
    """A persisted diagnostic row; ``stock_id`` is a lookup reference only."""

    id: int | None = None
    level: LogLevel
    message: str
    stock_id: int | None = None
    timestamp: datetime = field(default_factory=utcnow)
