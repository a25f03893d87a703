"""One scrape cycle: select a stock, fetch its page, reconcile its earnings dates.

The cycle walks ``START -> FETCHED_ENTITY -> FETCHED_PAGE -> PARSED -> RECONCILED
-> FINALIZED``. Any step may divert to ``ABORTED``; an abort ends the cycle only,
the scheduler carries on with the next tick.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from stonks.domain.model import LogLevel
from stonks.domain.normalization import normalize_tokens
from stonks.domain.ports.fetching import (
    DocumentParseError,
    FetchError,
    RequestFailedError,
    UnexpectedStatusError,
)
from stonks.domain.ports.persistence import PersistenceError
from stonks.domain.reconciliation import ReconciliationFailure, reconcile
from stonks.domain.selection import (
    NoActiveStockError,
    deactivate_stock,
    has_resolved_label,
    select_next_stock,
)

if TYPE_CHECKING:
    from stonks.domain.diagnostics import DiagnosticLog
    from stonks.domain.model import Stock
    from stonks.domain.ports.fetching import EarningsPage, EarningsPageFetcher
    from stonks.domain.ports.persistence import LogRepository
    from stonks.domain.ports.unit_of_work import EarningsRepositories, EarningsUnitOfWork

log = getLogger(__name__)

DEFAULT_MAX_ERROR_ENTRIES = 9

UnitOfWorkFactory = Callable[[], "EarningsUnitOfWork"]
Clock = Callable[[], datetime]
Echo = Callable[[str], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _print(line: str) -> None:
    print(line)  # noqa: T201


class CycleState(StrEnum):
    START = "start"
    FETCHED_ENTITY = "fetched_entity"
    FETCHED_PAGE = "fetched_page"
    PARSED = "parsed"
    RECONCILED = "reconciled"
    FINALIZED = "finalized"
    ABORTED = "aborted"


@dataclass(slots=True)
class CycleReport:
    """What one cycle did; ``state`` is ``ABORTED`` or ``FINALIZED`` once it returns."""

    state: CycleState = CycleState.START
    stock_id: int | None = None
    ticker: str | None = None
    added: int = 0
    removed: int = 0
    parse_failures: int = 0
    reconciliation_failures: list[ReconciliationFailure] = field(
        default_factory=list["ReconciliationFailure"]
    )
    abort_reason: str | None = None
    aborted_after: CycleState | None = None

    @property
    def failed(self) -> bool:
        return bool(self.reconciliation_failures)


class CycleAborted(Exception):  # noqa: N818
    """Internal signal that the current cycle cannot continue."""

    def __init__(
        self,
        message: str,
        *,
        level: LogLevel = LogLevel.ERROR,
        stock_id: int | None = None,
    ) -> None:
        super().__init__(message)
        self.level = level
        self.stock_id = stock_id


class UnitOfWorkEarningsWriter:
    """Commits every earnings-date change on its own so failures stay isolated."""

    def __init__(self, uow: EarningsUnitOfWork, stock_id: int) -> None:
        self._uow = uow
        self._stock_id = stock_id

    def delete(self, instant: datetime) -> None:
        self._apply(lambda: self._uow.repositories.earnings_dates.remove(self._stock_id, instant))

    def insert(self, instant: datetime) -> None:
        self._apply(lambda: self._uow.repositories.earnings_dates.add(self._stock_id, instant))

    def _apply(self, change: Callable[[], None]) -> None:
        try:
            change()
            self._uow.commit()
        except PersistenceError:
            self._uow.rollback()
            raise


@dataclass(slots=True)
class EarningsCycle:
    """Runs a single scrape cycle against the configured collaborators."""

    unit_of_work_factory: UnitOfWorkFactory
    fetcher: EarningsPageFetcher
    diagnostics: DiagnosticLog
    max_error_entries: int = DEFAULT_MAX_ERROR_ENTRIES
    debug: bool = False
    clock: Clock = _utcnow
    echo: Echo = _print

    def run(self) -> CycleReport:
        report = CycleReport()
        self.diagnostics.record_local(LogLevel.INFO, "Starting earnings date scraping...")
        try:
            self._run(report)
        except CycleAborted as exc:
            report.aborted_after = report.state
            report.state = CycleState.ABORTED
            report.abort_reason = str(exc)
            self.diagnostics.record_critical(exc.level, str(exc), exc.stock_id)
        log.debug("Earnings cycle ended in state %s", report.state)
        return report

    def _run(self, report: CycleReport) -> None:
        try:
            uow = self.unit_of_work_factory()
            with uow:
                self._run_in(uow, report)
        except PersistenceError as exc:
            raise CycleAborted(
                f"Storage unavailable: {exc}",
                level=LogLevel.FATAL,
                stock_id=report.stock_id,
            ) from exc

    def _run_in(self, uow: EarningsUnitOfWork, report: CycleReport) -> None:
        repositories = uow.repositories
        self._check_error_threshold(repositories.logs)

        stock = self._select(repositories)
        stock_id = _require_id(stock)
        report.stock_id = stock_id
        report.ticker = stock.ticker
        report.state = CycleState.FETCHED_ENTITY

        page = self._fetch(stock, stock_id)
        report.state = CycleState.FETCHED_PAGE

        if not has_resolved_label(page.company_name):
            deactivate_stock(repositories.stocks, stock)
            uow.commit()
            raise CycleAborted(
                f"Could not find company name. Marked as inactive: {stock.ticker}",
                level=LogLevel.WARN,
                stock_id=stock_id,
            )
        if not page.date_tokens:
            raise CycleAborted(
                f"Could not find earnings dates for ticker: {stock.ticker}",
                stock_id=stock_id,
            )

        normalized = normalize_tokens(page.date_tokens)
        for failure in normalized.failures:
            self.diagnostics.record(
                LogLevel.ERROR, f"Error parsing earnings date: {failure}", stock_id
            )
        report.parse_failures = len(normalized.failures)
        if not normalized.instants:
            self.diagnostics.record(
                LogLevel.WARN,
                f"No earnings date parsed for ticker {stock.ticker}; stored dates will be removed",
                stock_id,
            )
        report.state = CycleState.PARSED

        try:
            persisted = repositories.earnings_dates.instants_for(stock_id)
        except PersistenceError as exc:
            raise CycleAborted(
                f"Could not find earnings dates for stock: {exc}", stock_id=stock_id
            ) from exc

        _plan, outcome = reconcile(
            persisted,
            normalized.instants,
            writer=UnitOfWorkEarningsWriter(uow, stock_id),
            on_failure=lambda failure: self._report_failure(failure, stock_id),
        )
        report.added = outcome.added
        report.removed = outcome.removed
        report.reconciliation_failures = list(outcome.failures)
        report.state = CycleState.RECONCILED

        if self.debug:
            self._echo_counters(report)

        self._finalize(uow, stock, page, report)
        report.state = CycleState.FINALIZED

    def _check_error_threshold(self, logs: LogRepository) -> None:
        try:
            errors = logs.count_by_level(LogLevel.ERROR)
        except PersistenceError as exc:
            raise CycleAborted(
                f"Could not count errors in the loggers table: {exc}", level=LogLevel.FATAL
            ) from exc
        if errors > self.max_error_entries:
            raise CycleAborted(
                "Too many error logs exist in the loggers table. Exiting until next time"
            )

    def _select(self, repositories: EarningsRepositories) -> Stock:
        try:
            return select_next_stock(repositories.stocks)
        except NoActiveStockError as exc:
            raise CycleAborted(
                f"Could not find an active stock: {exc}", level=LogLevel.FATAL
            ) from exc

    def _fetch(self, stock: Stock, stock_id: int) -> EarningsPage:
        try:
            return self.fetcher(stock.ticker)
        except FetchError as exc:
            raise CycleAborted(_describe_fetch_error(exc, stock.ticker), stock_id=stock_id) from exc

    def _report_failure(self, failure: ReconciliationFailure, stock_id: int) -> None:
        self.diagnostics.record(
            LogLevel.ERROR,
            f"Could not {failure.action} earnings date {failure.instant.isoformat()}: "
            f"{failure.error}",
            stock_id,
        )

    def _finalize(
        self,
        uow: EarningsUnitOfWork,
        stock: Stock,
        page: EarningsPage,
        report: CycleReport,
    ) -> None:
        stock_id = report.stock_id
        stock.rename(page.company_name)
        if not report.failed:
            stock.touch(self.clock())
        try:
            uow.repositories.stocks.update(stock)
            uow.commit()
        except PersistenceError as exc:
            uow.rollback()
            raise CycleAborted(f"Could not update stock: {exc}", stock_id=stock_id) from exc

        if report.failed:
            self.diagnostics.record_critical(
                LogLevel.ERROR,
                "Something went wrong while updating earnings dates "
                f"({len(report.reconciliation_failures)} failed)",
                stock_id,
            )
        else:
            self.diagnostics.record_local(
                LogLevel.INFO, "Earnings date scraping completed successfully", stock_id
            )

    def _echo_counters(self, report: CycleReport) -> None:
        self.echo(str(self.clock()))
        self.echo(f"Stock ID: {report.stock_id}")
        self.echo(f"Ticker: {report.ticker}")
        self.echo(f"Number of added earnings dates: {report.added}")
        self.echo(f"Number of removed earnings dates: {report.removed}")
        self.echo("-----------------------------------")


def _require_id(stock: Stock) -> int:
    if stock.id is None:
        raise CycleAborted(f"Selected stock {stock.ticker} has no id", level=LogLevel.FATAL)
    return stock.id


def _describe_fetch_error(error: FetchError, ticker: str) -> str:
    if isinstance(error, UnexpectedStatusError):
        return f"Yahoo returned non-200 status code {error.status_code} for {ticker}"
    if isinstance(error, RequestFailedError):
        return f"Could not execute the request: {error}"
    if isinstance(error, DocumentParseError):
        return f"Could not create new document from response body: {error}"
    return f"Could not fetch earnings page: {error}"
