from __future__ import annotations

from datetime import UTC, datetime

import pytest

from stonks.domain.cycle import CycleState, EarningsCycle
from stonks.domain.diagnostics import DiagnosticLog, PersistentLogSink
from stonks.domain.model import LogEntry, LogLevel, Stock
from stonks.domain.ports.fetching import (
    DocumentParseError,
    FetchError,
    RequestFailedError,
    UnexpectedStatusError,
)
from tests.helpers.diagnostics import MemoryLogSink
from tests.helpers.earnings import (
    FakeEarningsDateRepository,
    FakeRepositories,
    FakeStockRepository,
    FakeStore,
    StaticFetcher,
    make_page,
    make_stock,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)
LAST_UPDATE = datetime(2024, 1, 1, tzinfo=UTC)

A = datetime(2024, 1, 2, 21, 0, tzinfo=UTC)
B = datetime(2024, 4, 30, 20, 0, tzinfo=UTC)
C = datetime(2024, 7, 25, 20, 0, tzinfo=UTC)
TOKEN_A = "Jan 02, 2024, 4PMEST"
TOKEN_B = "Apr 30, 2024, 4PMEDT"
TOKEN_C = "Jul 25, 2024, 4 PMEDT"


def _store(persisted: set[datetime] | None = None) -> FakeStore:
    return FakeStore(
        FakeRepositories(
            stocks=FakeStockRepository([make_stock("ACME", stock_id=1, updated_at=LAST_UPDATE)]),
            earnings_dates=FakeEarningsDateRepository({1: persisted or set()}),
        )
    )


def _cycle(
    store: FakeStore,
    fetcher: StaticFetcher,
    local_sink: MemoryLogSink,
    *,
    debug: bool = False,
    echoed: list[str] | None = None,
) -> EarningsCycle:
    diagnostics = DiagnosticLog(
        local=local_sink,
        persistent=PersistentLogSink(store.unit_of_work, clock=lambda: NOW),
    )
    return EarningsCycle(
        unit_of_work_factory=store.unit_of_work,
        fetcher=fetcher,
        diagnostics=diagnostics,
        debug=debug,
        clock=lambda: NOW,
        echo=(echoed if echoed is not None else []).append,
    )


def _stock(store: FakeStore) -> Stock:
    stock = store.repositories.stocks.get(1)
    assert stock is not None
    return stock


def test_cycle_adds_and_removes_dates_and_refreshes_stock(local_sink: MemoryLogSink) -> None:
    store = _store({A, B})
    fetcher = StaticFetcher({"ACME": make_page("Acme Corp", TOKEN_B, TOKEN_C, "N/A")})

    report = _cycle(store, fetcher, local_sink).run()

    assert report.state is CycleState.FINALIZED
    assert (report.added, report.removed, report.failed) == (1, 1, False)
    assert store.repositories.earnings_dates.items[1] == {B, C}
    stock = _stock(store)
    assert stock.company_name == "Acme Corp"
    assert stock.updated_at == NOW
    assert local_sink.messages(LogLevel.INFO) == [
        "Starting earnings date scraping...",
        "Earnings date scraping completed successfully",
    ]
    assert store.repositories.logs.messages() == []


def test_second_cycle_changes_nothing(local_sink: MemoryLogSink) -> None:
    store = _store({A})
    fetcher = StaticFetcher({"ACME": make_page("Acme Corp", TOKEN_B, TOKEN_C)})
    _cycle(store, fetcher, local_sink).run()
    store.repositories.earnings_dates.calls.clear()

    report = _cycle(store, fetcher, local_sink).run()

    assert (report.added, report.removed) == (0, 0)
    assert store.repositories.earnings_dates.calls == []


def test_partial_failure_keeps_update_time_and_logs_summary(local_sink: MemoryLogSink) -> None:
    store = _store({A})
    store.repositories.earnings_dates.fail_on_add.add(B)
    fetcher = StaticFetcher({"ACME": make_page("Acme Corp", TOKEN_B, TOKEN_C)})

    report = _cycle(store, fetcher, local_sink).run()

    assert report.state is CycleState.FINALIZED
    assert report.failed
    assert (report.added, report.removed) == (1, 1)
    assert store.repositories.earnings_dates.items[1] == {C}
    stock = _stock(store)
    assert stock.company_name == "Acme Corp"
    assert stock.updated_at == LAST_UPDATE
    errors = store.repositories.logs.messages(LogLevel.ERROR)
    assert errors[0].startswith("Could not insert earnings date 2024-04-30T20:00:00+00:00")
    assert errors[1].startswith("Something went wrong while updating earnings dates")
    assert any(
        message.startswith("Something went wrong")
        for message in local_sink.messages(LogLevel.ERROR)
    )
    assert "Earnings date scraping completed successfully" not in local_sink.messages()


def test_failed_delete_still_applies_inserts(local_sink: MemoryLogSink) -> None:
    store = _store({A})
    store.repositories.earnings_dates.fail_on_remove.add(A)
    fetcher = StaticFetcher({"ACME": make_page("Acme Corp", TOKEN_B, TOKEN_C)})

    report = _cycle(store, fetcher, local_sink).run()

    assert report.state is CycleState.FINALIZED
    assert report.failed
    assert (report.added, report.removed) == (2, 0)
    assert store.repositories.earnings_dates.items[1] == {A, B, C}
    stock = _stock(store)
    assert stock.company_name == "Acme Corp"
    assert stock.updated_at == LAST_UPDATE
    errors = store.repositories.logs.messages(LogLevel.ERROR)
    assert errors[0].startswith("Could not delete earnings date 2024-01-02T21:00:00+00:00")
    assert errors[1].startswith("Something went wrong while updating earnings dates (1 failed)")


def test_circuit_breaker_aborts_before_selection(local_sink: MemoryLogSink) -> None:
    store = _store({A})
    for index in range(10):
        store.repositories.logs.add(LogEntry(level=LogLevel.ERROR, message=f"boom {index}"))
    fetcher = StaticFetcher({"ACME": make_page("Acme Corp", TOKEN_B)})

    report = _cycle(store, fetcher, local_sink).run()

    assert report.state is CycleState.ABORTED
    assert report.aborted_after is CycleState.START
    assert report.stock_id is None
    assert fetcher.calls == []
    assert store.repositories.earnings_dates.items[1] == {A}
    assert local_sink.messages(LogLevel.ERROR) == [
        "Too many error logs exist in the loggers table. Exiting until next time"
    ]


def test_nine_errors_do_not_trip_the_breaker(local_sink: MemoryLogSink) -> None:
    store = _store()
    for index in range(9):
        store.repositories.logs.add(LogEntry(level=LogLevel.ERROR, message=f"boom {index}"))
    fetcher = StaticFetcher({"ACME": make_page("Acme Corp", TOKEN_B)})

    report = _cycle(store, fetcher, local_sink).run()

    assert report.state is CycleState.FINALIZED
    assert fetcher.calls == ["ACME"]


def test_no_active_stock_is_fatal_for_the_cycle(local_sink: MemoryLogSink) -> None:
    store = FakeStore(
        FakeRepositories(stocks=FakeStockRepository([make_stock(is_active=False)]))
    )
    fetcher = StaticFetcher({})

    report = _cycle(store, fetcher, local_sink).run()

    assert report.state is CycleState.ABORTED
    assert store.repositories.logs.messages(LogLevel.FATAL)[0].startswith(
        "Could not find an active stock"
    )
    assert local_sink.messages(LogLevel.FATAL)[0].startswith("Could not find an active stock")


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (
            UnexpectedStatusError("server error", status_code=503),
            "Yahoo returned non-200 status code 503 for ACME",
        ),
        (RequestFailedError("timed out"), "Could not execute the request: timed out"),
        (DocumentParseError("bad markup"), "Could not create new document from response body"),
        (FetchError("other"), "Could not fetch earnings page: other"),
    ],
)
def test_fetch_failures_abort_without_touching_dates(
    local_sink: MemoryLogSink, error: FetchError, expected: str
) -> None:
    store = _store({A})
    fetcher = StaticFetcher({"ACME": error})

    report = _cycle(store, fetcher, local_sink).run()

    assert report.state is CycleState.ABORTED
    assert report.aborted_after is CycleState.FETCHED_ENTITY
    assert store.repositories.earnings_dates.items[1] == {A}
    assert _stock(store).updated_at == LAST_UPDATE
    (message,) = store.repositories.logs.messages(LogLevel.ERROR)
    assert message.startswith(expected)
    assert store.repositories.logs.entries[0].stock_id == 1


def test_unresolved_label_deactivates_stock(local_sink: MemoryLogSink) -> None:
    store = _store({A})
    fetcher = StaticFetcher({"ACME": make_page("", TOKEN_B)})

    report = _cycle(store, fetcher, local_sink).run()

    assert report.state is CycleState.ABORTED
    assert report.aborted_after is CycleState.FETCHED_PAGE
    assert _stock(store).is_active is False
    assert store.repositories.logs.messages(LogLevel.WARN) == [
        "Could not find company name. Marked as inactive: ACME"
    ]
    assert store.repositories.earnings_dates.items[1] == {A}


def test_no_date_cells_aborts(local_sink: MemoryLogSink) -> None:
    store = _store({A})
    fetcher = StaticFetcher({"ACME": make_page("Acme Corp")})

    report = _cycle(store, fetcher, local_sink).run()

    assert report.state is CycleState.ABORTED
    assert store.repositories.logs.messages(LogLevel.ERROR) == [
        "Could not find earnings dates for ticker: ACME"
    ]
    assert store.repositories.earnings_dates.items[1] == {A}


def test_unparseable_tokens_are_logged_and_skipped(local_sink: MemoryLogSink) -> None:
    store = _store()
    fetcher = StaticFetcher({"ACME": make_page("Acme Corp", "Someday soon-ish", TOKEN_B)})

    report = _cycle(store, fetcher, local_sink).run()

    assert report.state is CycleState.FINALIZED
    assert report.parse_failures == 1
    assert store.repositories.earnings_dates.items[1] == {B}
    (message,) = store.repositories.logs.messages(LogLevel.ERROR)
    assert message.startswith("Error parsing earnings date")


def test_all_tokens_unparseable_clears_stored_dates(local_sink: MemoryLogSink) -> None:
    store = _store({A, B})
    fetcher = StaticFetcher({"ACME": make_page("Acme Corp", "not a date at all")})

    report = _cycle(store, fetcher, local_sink).run()

    assert report.removed == 2
    assert store.repositories.earnings_dates.items[1] == set()
    assert store.repositories.logs.messages(LogLevel.WARN) == [
        "No earnings date parsed for ticker ACME; stored dates will be removed"
    ]


def test_storage_outage_is_written_locally(local_sink: MemoryLogSink) -> None:
    store = _store({A})
    store.repositories.logs.fail = True
    fetcher = StaticFetcher({"ACME": make_page("Acme Corp", TOKEN_B)})

    report = _cycle(store, fetcher, local_sink).run()

    assert report.state is CycleState.ABORTED
    assert fetcher.calls == []
    fatal = local_sink.messages(LogLevel.FATAL)
    assert fatal[0].startswith("Could not count errors in the loggers table")
    assert any(
        message.startswith("Could not write to the database")
        for message in local_sink.messages(LogLevel.ERROR)
    )


def test_persisted_read_failure_aborts(local_sink: MemoryLogSink) -> None:
    store = _store({A})
    store.repositories.earnings_dates.fail_reads = True
    fetcher = StaticFetcher({"ACME": make_page("Acme Corp", TOKEN_B)})

    report = _cycle(store, fetcher, local_sink).run()

    assert report.state is CycleState.ABORTED
    assert report.aborted_after is CycleState.PARSED
    assert _stock(store).updated_at == LAST_UPDATE


def test_debug_mode_echoes_counters(local_sink: MemoryLogSink) -> None:
    store = _store({A})
    fetcher = StaticFetcher({"ACME": make_page("Acme Corp", TOKEN_B, TOKEN_C)})
    echoed: list[str] = []

    _cycle(store, fetcher, local_sink, debug=True, echoed=echoed).run()

    assert echoed == [
        str(NOW),
        "Stock ID: 1",
        "Ticker: ACME",
        "Number of added earnings dates: 2",
        "Number of removed earnings dates: 1",
        "-----------------------------------",
    ]


def test_quiet_mode_echoes_nothing(local_sink: MemoryLogSink) -> None:
    store = _store({A})
    fetcher = StaticFetcher({"ACME": make_page("Acme Corp", TOKEN_B)})
    echoed: list[str] = []

    _cycle(store, fetcher, local_sink, echoed=echoed).run()

    assert echoed == []


def test_stock_update_failure_aborts_after_reconciliation(local_sink: MemoryLogSink) -> None:
    store = _store({A})
    store.repositories.stocks.fail_updates = True
    fetcher = StaticFetcher({"ACME": make_page("Acme Corp", TOKEN_B)})

    report = _cycle(store, fetcher, local_sink).run()

    assert report.state is CycleState.ABORTED
    assert report.aborted_after is CycleState.RECONCILED
    assert store.repositories.earnings_dates.items[1] == {B}
    (message,) = store.repositories.logs.messages(LogLevel.ERROR)
    assert message.startswith("Could not update stock")
