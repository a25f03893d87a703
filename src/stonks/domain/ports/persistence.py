"""Ports for persisting stocks, earnings dates and diagnostic rows."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from stonks.domain.model import LogEntry, LogLevel, Stock


class PersistenceError(RuntimeError):
    """Raised by storage adapters when a read or write cannot be completed."""


@runtime_checkable
class StockRepository(Protocol):
    """Persistence contract for tracked stocks."""

    def next_active(self) -> Stock | None:
        """Return the active stock with the oldest ``updated_at`` (ties by id)."""
        ...

    def get(self, stock_id: int) -> Stock | None: ...

    def update(self, stock: Stock) -> None: ...


@runtime_checkable
class EarningsDateRepository(Protocol):
    """Persistence contract for the earnings instants of one stock."""

    def instants_for(self, stock_id: int) -> frozenset[datetime]: ...

    def add(self, stock_id: int, instant: datetime) -> None: ...

    def remove(self, stock_id: int, instant: datetime) -> None: ...


@runtime_checkable
class LogRepository(Protocol):
    """Persistence contract for the bounded diagnostic log table."""

    def add(self, entry: LogEntry) -> None: ...

    def count(self) -> int: ...

    def count_by_level(self, level: LogLevel) -> int: ...

    def delete_oldest(self, limit: int = 1) -> int:
        """Delete up to ``limit`` rows with the lowest ids and return how many went."""
        ...

    def list_for_stock(self, stock_id: int) -> Sequence[LogEntry]: ...
