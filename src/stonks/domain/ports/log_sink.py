"""Port for capacity-bounded diagnostic sinks."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from stonks.domain.model import LogLevel


class LogSinkError(RuntimeError):
    """Raised when a sink cannot count, evict or write an entry."""


@runtime_checkable
class LogSink(Protocol):
    """Append-only log that never holds more than its capacity."""

    capacity: int

    def write(self, level: LogLevel, message: str, stock_id: int | None = None) -> None: ...
