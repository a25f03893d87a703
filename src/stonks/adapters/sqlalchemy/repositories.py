"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from functools import wraps
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from stonks.adapters.sqlalchemy.mappings import earnings_date_table, log_table, stock_table
from stonks.domain.model import EarningsDate, LogEntry, Stock
from stonks.domain.ports.persistence import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime

    from sqlalchemy.engine import CursorResult
    from sqlalchemy.orm import Session

    from stonks.domain.model import LogLevel


def translate_errors[**P, T](method: Callable[P, T]) -> Callable[P, T]:
    """Re-raise driver and ORM failures as ``PersistenceError``."""

    @wraps(method)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        try:
            return method(*args, **kwargs)
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

    return wrapper


class SqlAlchemyStockRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    @translate_errors
    def next_active(self) -> Stock | None:
        stmt = (
            select(Stock)
            .where(stock_table.c.is_active.is_(True))
            .order_by(stock_table.c.updated_at.asc(), stock_table.c.id.asc())
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    @translate_errors
    def get(self, stock_id: int) -> Stock | None:
        return self.session.get(Stock, stock_id)

    @translate_errors
    def update(self, stock: Stock) -> None:
        self.session.add(stock)
        self.session.flush()


class SqlAlchemyEarningsDateRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    @translate_errors
    def instants_for(self, stock_id: int) -> frozenset[datetime]:
        stmt = select(earnings_date_table.c.earnings_datetime).where(
            earnings_date_table.c.stock_id == stock_id
        )
        return frozenset(self.session.execute(stmt).scalars())

    @translate_errors
    def add(self, stock_id: int, instant: datetime) -> None:
        self.session.add(EarningsDate(stock_id=stock_id, earnings_datetime=instant))
        self.session.flush()

    @translate_errors
    def remove(self, stock_id: int, instant: datetime) -> None:
        stmt = (
            delete(earnings_date_table)
            .where(earnings_date_table.c.stock_id == stock_id)
            .where(earnings_date_table.c.earnings_datetime == instant)
        )
        self.session.execute(stmt)


class SqlAlchemyLogRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    @translate_errors
    def add(self, entry: LogEntry) -> None:
        self.session.add(entry)
        self.session.flush()

    @translate_errors
    def count(self) -> int:
        stmt = select(func.count()).select_from(log_table)
        return self.session.execute(stmt).scalar_one()

    @translate_errors
    def count_by_level(self, level: LogLevel) -> int:
        stmt = select(func.count()).select_from(log_table).where(log_table.c.level == level)
        return self.session.execute(stmt).scalar_one()

    @translate_errors
    def delete_oldest(self, limit: int = 1) -> int:
        if limit < 1:
            return 0
        oldest = select(log_table.c.id).order_by(log_table.c.id.asc()).limit(limit)
        stmt = delete(log_table).where(log_table.c.id.in_(oldest.scalar_subquery()))
        result = cast("CursorResult[Any]", self.session.execute(stmt))
        return result.rowcount

    @translate_errors
    def list_for_stock(self, stock_id: int) -> Sequence[LogEntry]:
        stmt = (
            select(LogEntry)
            .where(log_table.c.stock_id == stock_id)
            .order_by(log_table.c.id.asc())
        )
        return self.session.execute(stmt).scalars().all()
