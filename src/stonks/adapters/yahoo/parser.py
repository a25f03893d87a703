"""Extract the company label and earnings date cells from a calendar page."""

from __future__ import annotations

from bs4 import BeautifulSoup, ParserRejectedMarkup

from stonks.domain.ports.fetching import DocumentParseError, EarningsPage

COMPANY_SELECTOR = "td[aria-label='Company']"
EARNINGS_DATE_SELECTOR = "td[aria-label='Earnings Date']"


def parse_earnings_page(html: str) -> EarningsPage:
    """Return the first company cell and every earnings date cell, stripped.

    A missing company cell yields an empty label; missing date cells yield no
    tokens. Neither is an error here, the cycle decides what they mean.
    """

    try:
        soup = BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup as exc:
        raise DocumentParseError(f"Could not parse earnings page: {exc}") from exc

    company_cell = soup.select_one(COMPANY_SELECTOR)
    company_name = company_cell.get_text().strip() if company_cell is not None else ""
    date_tokens = tuple(cell.get_text().strip() for cell in soup.select(EARNINGS_DATE_SELECTOR))
    return EarningsPage(company_name=company_name, date_tokens=date_tokens)
