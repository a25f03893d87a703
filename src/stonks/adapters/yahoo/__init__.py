"""Yahoo Finance adapter package."""

from __future__ import annotations

from .client import YahooEarningsClient, YahooEarningsFetcher
from .parser import parse_earnings_page

__all__ = ["YahooEarningsClient", "YahooEarningsFetcher", "parse_earnings_page"]
