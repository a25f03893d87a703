"""Yahoo Finance earnings calendar configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

YAHOO_BASE_URL = "https://finance.yahoo.com"
YAHOO_EARNINGS_PATH = "/calendar/earnings"
YAHOO_TIMEOUT_SECONDS = 20.0

DEFAULT_USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/126.0.0.0 Safari/537.36 Edg/126.0.2592.87",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/126.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:127.0) Gecko/20100101 Firefox/127.0",
)

DEFAULT_HEADERS = {
    "Upgrade-Insecure-Requests": "1",
    "Cache-Control": "no-cache",
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,"
        "image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7"
    ),
}


@dataclass(frozen=True, slots=True)
class YahooConfig:
    """Holds the endpoint and request fingerprint for earnings page scrapes."""

    resilience: ResilienceConfig
    earnings_path: str = YAHOO_EARNINGS_PATH
    user_agents: tuple[str, ...] = field(default_factory=lambda: DEFAULT_USER_AGENTS)


def get_yahoo_config() -> YahooConfig:
    resilience = ResilienceConfig(
        name="yahoo",
        base_url=YAHOO_BASE_URL,
        timeout_seconds=YAHOO_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=1, per_seconds=1.0),
        retry=RetryPolicy(total=2),
        default_headers=DEFAULT_HEADERS,
    )
    return YahooConfig(resilience=resilience)
