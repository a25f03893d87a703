from __future__ import annotations

import asyncio
import socket

import httpx
import pytest

from stonks.adapters.http_resilience import ResilientClient, build_retry
from stonks.adapters.network import has_network_connection
from stonks.config.http_resilience import RateLimit, ResilienceConfig, RetryPolicy


def test_build_retry_copies_policy() -> None:
    retry = build_retry(RetryPolicy(total=3, backoff_factor=0.1))

    assert retry.total == 3
    assert retry.backoff_factor == 0.1


def test_resilient_client_applies_defaults() -> None:
    seen: list[httpx.Request] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="ok")

    config = ResilienceConfig(
        name="test",
        base_url="https://example.test",
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        default_headers={"Cache-Control": "no-cache"},
    )

    async def run() -> httpx.Response:
        async with ResilientClient(config) as client:
            client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
                base_url=config.base_url or "",
                headers=dict(config.default_headers or {}),
                transport=httpx.MockTransport(handler),
            )
            return await client.get("/path", params={"q": "1"})

    response = asyncio.run(run())

    assert response.text == "ok"
    assert str(seen[0].url) == "https://example.test/path?q=1"
    assert seen[0].headers["Cache-Control"] == "no-cache"


def test_network_probe_reports_resolution_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def fail(*_args: object, **_kwargs: object) -> list[object]:
        raise socket.gaierror("Name or service not known")

    monkeypatch.setattr(socket, "getaddrinfo", fail)

    assert has_network_connection("google.com") is False


def test_network_probe_reports_success(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(socket, "getaddrinfo", lambda *_args, **_kwargs: [("ok",)])

    assert has_network_connection("google.com") is True
