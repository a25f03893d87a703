"""Yahoo Finance earnings calendar client."""

from __future__ import annotations

import asyncio
import random
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from stonks.adapters.http_resilience import ResilientClient
from stonks.domain.ports.fetching import RequestFailedError, UnexpectedStatusError

from .parser import parse_earnings_page

if TYPE_CHECKING:
    from collections.abc import Callable

    from stonks.config.http_resilience import ResilienceConfig
    from stonks.config.yahoo import YahooConfig
    from stonks.domain.ports.fetching import EarningsPage

log = getLogger(__name__)


class YahooEarningsClient:
    """Fetches the earnings calendar page of one ticker per call."""

    def __init__(
        self,
        *,
        config: YahooConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        choose_user_agent: Callable[[tuple[str, ...]], str] = random.choice,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._choose_user_agent = choose_user_agent

    def fetch_page(self, ticker: str) -> str:
        return asyncio.run(self._fetch_page_async(ticker))

    async def _fetch_page_async(self, ticker: str) -> str:
        headers = {"User-Agent": self._choose_user_agent(self._config.user_agents)}
        async with self._client_factory(self._resilience) as client:
            try:
                response = await client.get(
                    self._config.earnings_path,
                    params={"symbol": ticker},
                    headers=headers,
                )
            except httpx.HTTPError as exc:
                raise RequestFailedError(f"Request for {ticker} failed: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            raise UnexpectedStatusError(
                f"Yahoo returned status {response.status_code} for {ticker}",
                status_code=response.status_code,
            )
        return response.text


class YahooEarningsFetcher:
    """``EarningsPageFetcher`` backed by the Yahoo calendar page."""

    def __init__(
        self,
        *,
        config: YahooConfig,
        client: YahooEarningsClient | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._client = client or YahooEarningsClient(config=config, client_factory=client_factory)

    def __call__(self, ticker: str) -> EarningsPage:
        html = self._client.fetch_page(ticker)
        page = parse_earnings_page(html)
        log.debug(
            "Fetched earnings page for %s: label=%r, %d date cell(s)",
            ticker,
            page.company_name,
            len(page.date_tokens),
        )
        return page
