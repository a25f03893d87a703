"""Bounded diagnostic logging.

Two sinks keep an operator-facing trail of what each scrape did: the ``logs``
table (``PersistentLogSink``) and a local text file (see
``stonks.adapters.log_file``). Both evict their oldest entry before a write that
would exceed capacity. ``DiagnosticLog`` routes entries between them and mirrors
everything to the stdlib logging tree.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from stonks.domain.model import LogEntry, LogLevel
from stonks.domain.ports.log_sink import LogSink, LogSinkError
from stonks.domain.ports.persistence import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from stonks.domain.ports.unit_of_work import EarningsUnitOfWork

log = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1000

UnitOfWorkFactory = Callable[[], "EarningsUnitOfWork"]
Clock = Callable[[], datetime]

_STDLIB_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.FATAL: logging.CRITICAL,
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PersistentLogSink:
    """Log rows in the database, capped at ``capacity`` rows."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        capacity: int = DEFAULT_CAPACITY,
        clock: Clock = _utcnow,
    ) -> None:
        if capacity < 1:
            raise ValueError("Log capacity must be positive")
        self.capacity = capacity
        self._unit_of_work_factory = unit_of_work_factory
        self._clock = clock

    def write(self, level: LogLevel, message: str, stock_id: int | None = None) -> None:
        entry = LogEntry(level=level, message=message, stock_id=stock_id, timestamp=self._clock())
        try:
            with self._unit_of_work_factory() as uow:
                logs = uow.repositories.logs
                occupancy = logs.count()
                if occupancy >= self.capacity:
                    logs.delete_oldest(occupancy - self.capacity + 1)
                logs.add(entry)
                uow.commit()
        except PersistenceError as exc:
            raise LogSinkError(f"Could not write to the database: {exc}") from exc

    def count(self, level: LogLevel | None = None) -> int:
        try:
            with self._unit_of_work_factory() as uow:
                logs = uow.repositories.logs
                return logs.count() if level is None else logs.count_by_level(level)
        except PersistenceError as exc:
            raise LogSinkError(f"Could not count log rows: {exc}") from exc

    def entries_for(self, stock_id: int) -> Sequence[LogEntry]:
        try:
            with self._unit_of_work_factory() as uow:
                return list(uow.repositories.logs.list_for_stock(stock_id))
        except PersistenceError as exc:
            raise LogSinkError(f"Could not read log rows: {exc}") from exc


class DiagnosticLog:
    """Routes diagnostic entries to the persistent sink with a local fallback.

    ``record`` tries the database first and only touches the local file when that
    fails. ``record_local`` skips the database. ``record_critical`` is for entries
    that must survive even when the database is the reason for the abort: it
    tries the database and always writes the local file too.

    A failing local write is reported through stdlib logging and otherwise
    dropped; there is nothing further to fall back to.
    """

    def __init__(self, *, local: LogSink, persistent: PersistentLogSink | None = None) -> None:
        self.local = local
        self.persistent = persistent

    def record(self, level: LogLevel, message: str, stock_id: int | None = None) -> None:
        _mirror(level, message, stock_id)
        if not self._write_persistent(level, message, stock_id):
            self._write_local(level, message, stock_id)

    def record_local(self, level: LogLevel, message: str, stock_id: int | None = None) -> None:
        _mirror(level, message, stock_id)
        self._write_local(level, message, stock_id)

    def record_critical(self, level: LogLevel, message: str, stock_id: int | None = None) -> None:
        _mirror(level, message, stock_id)
        self._write_persistent(level, message, stock_id)
        self._write_local(level, message, stock_id)

    def _write_persistent(self, level: LogLevel, message: str, stock_id: int | None) -> bool:
        if self.persistent is None:
            return False
        try:
            self.persistent.write(level, message, stock_id)
        except LogSinkError as exc:
            self._write_local(LogLevel.ERROR, str(exc), stock_id)
            return False
        return True

    def _write_local(self, level: LogLevel, message: str, stock_id: int | None) -> bool:
        try:
            self.local.write(level, message, stock_id)
        except LogSinkError as exc:
            log.error("Local log write failed: %s", exc)  # noqa: TRY400
            return False
        return True


def _mirror(level: LogLevel, message: str, stock_id: int | None) -> None:
    if stock_id is None:
        log.log(_STDLIB_LEVELS[level], message)
    else:
        log.log(_STDLIB_LEVELS[level], "%s (stock_id=%s)", message, stock_id)
