from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from stonks.adapters.log_file import LocalLogFile
from stonks.adapters.sqlalchemy.unit_of_work import shutdown
from stonks.app import build_scheduler, start_storage
from stonks.config import ConfigurationError, configure_logging, get_local_log_config
from stonks.domain.model import LogLevel
from stonks.domain.ports.log_sink import LogSinkError
from stonks.domain.ports.persistence import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Keep upcoming earnings dates in sync with Yahoo Finance"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print per-cycle counters and enable debug logging",
    )
    return parser.parse_args(list(argv))


def _run(local_log: LocalLogFile, *, debug: bool) -> None:
    try:
        start_storage()
    except ConfigurationError as exc:
        log.exception("Invalid configuration")
        local_log.write(LogLevel.FATAL, f"Error loading configuration: {exc}")
        sys.exit(1)
    except PersistenceError as exc:
        log.exception("Could not start storage")
        local_log.write(LogLevel.FATAL, f"Failed to connect to database: {exc}")
        sys.exit(1)

    local_log.write(LogLevel.INFO, "Earnings scraper initialized...")
    scheduler = build_scheduler(local_log, debug=debug)
    try:
        scheduler.run_forever()
    finally:
        scheduler.stop()
        shutdown()


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args = _parse_args(argv if argv is not None else sys.argv[1:])
    configure_logging(level=logging.DEBUG if parsed_args.debug else logging.INFO)
    load_dotenv()
    signal(SIGINT, sigint_handler)

    local_config = get_local_log_config()
    try:
        with LocalLogFile(
            local_config.resolve_path(), capacity=local_config.capacity
        ) as local_log:
            _run(local_log, debug=parsed_args.debug)
    except LogSinkError:
        log.exception("Local log file unavailable")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    main()
