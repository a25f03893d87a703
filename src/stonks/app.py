"""Application wiring for the earnings scraper."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from stonks.adapters.network import has_network_connection
from stonks.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, startup
from stonks.adapters.yahoo import YahooEarningsFetcher
from stonks.config import (
    get_database_config,
    get_log_retention_config,
    get_scheduler_config,
    get_yahoo_config,
)
from stonks.domain.cycle import EarningsCycle
from stonks.domain.diagnostics import DiagnosticLog, PersistentLogSink
from stonks.domain.ports.unit_of_work import EarningsUnitOfWork
from stonks.scheduler import CycleScheduler

if TYPE_CHECKING:
    from stonks.config import LogRetentionConfig, SchedulerConfig
    from stonks.domain.ports.fetching import EarningsPageFetcher
    from stonks.domain.ports.log_sink import LogSink
    from stonks.scheduler import ConnectivityProbe

UnitOfWorkFactory = Callable[[], EarningsUnitOfWork]

log = getLogger(__name__)


def build_diagnostics(
    local_log: LogSink,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    retention: LogRetentionConfig | None = None,
) -> DiagnosticLog:
    effective_retention = retention or get_log_retention_config()
    persistent = PersistentLogSink(
        unit_of_work_factory or SqlAlchemyUnitOfWork,
        capacity=effective_retention.capacity,
    )
    return DiagnosticLog(local=local_log, persistent=persistent)


def build_earnings_cycle(
    diagnostics: DiagnosticLog,
    *,
    fetcher: EarningsPageFetcher | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    retention: LogRetentionConfig | None = None,
    debug: bool = False,
) -> EarningsCycle:
    effective_retention = retention or get_log_retention_config()
    return EarningsCycle(
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyUnitOfWork,
        fetcher=fetcher or YahooEarningsFetcher(config=get_yahoo_config()),
        diagnostics=diagnostics,
        max_error_entries=effective_retention.max_error_entries,
        debug=debug,
    )


def build_scheduler(
    local_log: LogSink,
    *,
    fetcher: EarningsPageFetcher | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    scheduler_config: SchedulerConfig | None = None,
    connectivity_probe: ConnectivityProbe = has_network_connection,
    debug: bool = False,
) -> CycleScheduler:
    """Assemble the scrape loop around an already started storage adapter."""

    retention = get_log_retention_config()
    diagnostics = build_diagnostics(
        local_log, unit_of_work_factory=unit_of_work_factory, retention=retention
    )
    cycle = build_earnings_cycle(
        diagnostics,
        fetcher=fetcher,
        unit_of_work_factory=unit_of_work_factory,
        retention=retention,
        debug=debug,
    )
    return CycleScheduler(
        run_cycle=cycle.run,
        diagnostics=diagnostics,
        config=scheduler_config or get_scheduler_config(),
        connectivity_probe=connectivity_probe,
    )


def start_storage() -> None:
    """Connect to the configured database and make sure the schema exists."""

    database = get_database_config()
    startup(database_uri=database.uri)
    log.info("Storage adapter started")
