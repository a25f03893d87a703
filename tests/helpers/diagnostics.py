"""In-memory log sinks for diagnostics tests."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING

from stonks.domain.ports.log_sink import LogSinkError

if TYPE_CHECKING:
    from stonks.domain.model import LogLevel


@dataclass(frozen=True, slots=True)
class SinkEntry:
    level: LogLevel
    message: str
    stock_id: int | None


class MemoryLogSink:
    """Bounded local sink keeping entries in a deque."""

    def __init__(self, capacity: int = 1000, *, fail: bool = False) -> None:
        self.capacity = capacity
        self.fail = fail
        self.entries: deque[SinkEntry] = deque(maxlen=capacity)

    def write(self, level: LogLevel, message: str, stock_id: int | None = None) -> None:
        if self.fail:
            raise LogSinkError("local sink unavailable")
        self.entries.append(SinkEntry(level=level, message=message, stock_id=stock_id))

    def messages(self, level: LogLevel | None = None) -> list[str]:
        return [entry.message for entry in self.entries if level is None or entry.level == level]


if TYPE_CHECKING:
    from stonks.domain.ports.log_sink import LogSink

    _sink_check: LogSink = MemoryLogSink()
