"""Capacity-bounded local text log."""

from __future__ import annotations

import os
from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, TextIO

from stonks.config.storage import DEFAULT_LOG_CAPACITY
from stonks.domain.ports.log_sink import LogSinkError

if TYPE_CHECKING:
    from pathlib import Path
    from types import TracebackType

    from stonks.domain.model import LogLevel

log = getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def format_line(
    timestamp: datetime,
    level: LogLevel,
    message: str,
    stock_id: int | None,
) -> str:
    entity_ref = "nil" if stock_id is None else str(stock_id)
    flat_message = " ".join(message.splitlines())
    return f"{timestamp.isoformat()} [{level}] {flat_message} (entity_ref: {entity_ref})"


class LocalLogFile:
    """Append-only text log holding at most ``capacity`` lines.

    The retained lines are mirrored in a deque. Appends go straight to the open
    handle until the file is full; after that each write drops the oldest line
    and rewrites the file through a temporary sibling.
    """

    def __init__(
        self,
        path: Path,
        *,
        capacity: int = DEFAULT_LOG_CAPACITY,
        clock: Clock = _utcnow,
    ) -> None:
        if capacity < 1:
            raise ValueError("Log capacity must be positive")
        self.path = path
        self.capacity = capacity
        self._clock = clock
        self._lines: deque[str] = deque(maxlen=capacity)
        self._handle: TextIO | None = None

    def __enter__(self) -> LocalLogFile:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def open(self) -> None:
        if self._handle is not None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            text = self.path.read_text(encoding="utf-8") if self.path.exists() else ""
            existing = text.splitlines()
            self._lines.extend(existing)
            unterminated = bool(text) and not text.endswith("\n")
            if len(existing) > self.capacity or unterminated:
                self._rewrite(list(self._lines))
            else:
                self._handle = self.path.open("a", encoding="utf-8")
        except OSError as exc:
            raise LogSinkError(f"Could not open log file {self.path}: {exc}") from exc
        log.debug("Opened local log %s with %d retained line(s)", self.path, len(self._lines))

    def close(self) -> None:
        if self._handle is None:
            return
        try:
            self._handle.close()
        finally:
            self._handle = None

    def write(self, level: LogLevel, message: str, stock_id: int | None = None) -> None:
        handle = self._require_handle()
        line = format_line(self._clock(), level, message, stock_id)
        try:
            if len(self._lines) >= self.capacity:
                self._rewrite([*self._lines, line][-self.capacity :])
            else:
                handle.write(line + "\n")
                handle.flush()
        except OSError as exc:
            raise LogSinkError(f"Could not write to log file {self.path}: {exc}") from exc
        self._lines.append(line)

    def lines(self) -> list[str]:
        return list(self._lines)

    def _require_handle(self) -> TextIO:
        if self._handle is None:
            raise LogSinkError(f"Log file {self.path} is not open")
        return self._handle

    def _rewrite(self, lines: list[str]) -> None:
        scratch = self.path.with_name(self.path.name + ".tmp")
        scratch.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        self.close()
        try:
            os.replace(scratch, self.path)
        finally:
            self._handle = self.path.open("a", encoding="utf-8")
