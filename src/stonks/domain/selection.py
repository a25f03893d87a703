"""Pick the stock to scrape next."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stonks.domain.model import Stock
    from stonks.domain.ports.persistence import StockRepository


class NoActiveStockError(LookupError):
    """Raised when every stock has been deactivated (or none were seeded)."""


def select_next_stock(stocks: StockRepository) -> Stock:
    """Return the active stock that was refreshed least recently."""

    stock = stocks.next_active()
    if stock is None:
        raise NoActiveStockError("No active stock to scrape")
    return stock


def deactivate_stock(stocks: StockRepository, stock: Stock) -> None:
    """Permanently drop ``stock`` from selection; it is not retried later."""

    stock.deactivate()
    stocks.update(stock)


def has_resolved_label(company_name: str) -> bool:
    return bool(company_name.strip())
