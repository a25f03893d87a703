"""Ports for fetching an earnings calendar page."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


class FetchError(RuntimeError):
    """Base class for failures of the fetch/parse boundary."""


class RequestFailedError(FetchError):
    """The request could not be built or executed (DNS, TLS, timeout, ...)."""


class UnexpectedStatusError(FetchError):
    """The server answered with a non-success status code."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class DocumentParseError(FetchError):
    """The response body could not be read as an HTML document."""


@dataclass(frozen=True, slots=True)
class EarningsPage:
    """Label and raw date cells extracted from one earnings calendar page.

    ``company_name`` is stripped and may be empty when the page does not list the
    ticker. ``date_tokens`` keeps page order and is not parsed.
    """

    company_name: str
    date_tokens: tuple[str, ...]


@runtime_checkable
class EarningsPageFetcher(Protocol):
    """Callable port returning the earnings page for a ticker."""

    def __call__(self, ticker: str) -> EarningsPage: ...


__all__ = [
    "DocumentParseError",
    "EarningsPage",
    "EarningsPageFetcher",
    "FetchError",
    "RequestFailedError",
    "UnexpectedStatusError",
]
