from __future__ import annotations

import asyncio
from typing import Any

import httpx
import pytest

import pipelines.sources.fred as fred


def _raise_for(result: Any, url: str, params: dict[str, Any]) -> None:
    """Integers stand for an HTTP error status, exceptions are raised as-is."""

    if isinstance(result, Exception):
        raise result
    if isinstance(result, int):
        request = httpx.Request("GET", url, params=params)
        response = httpx.Response(result, request=request)
        raise httpx.HTTPStatusError("provider error", request=request, response=response)


class FakeProvider:
    """Stands in for ``fetch_json`` with canned FRED search/observation payloads."""

    def __init__(self) -> None:
        self.search_results: dict[str, Any] = {}
        self.observations: dict[str, Any] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def __call__(self, url: str, *, headers=None, params=None, timeout=None) -> Any:
        params = dict(params or {})
        self.calls.append((url, params))
        if url.endswith("/fred/series/search"):
            result = self.search_results.get(params["search_text"], [])
            _raise_for(result, url, params)
            return {"seriess": result}
        if url.endswith("/fred/series/observations"):
            result = self.observations.get(params["series_id"], 400)
            _raise_for(result, url, params)
            return {"observations": result}
        raise AssertionError(f"Unexpected URL {url}")

    def searches(self) -> list[str]:
        return [params["search_text"] for url, params in self.calls if url.endswith("/search")]

    def fetched(self) -> list[str]:
        return [params["series_id"] for url, params in self.calls if url.endswith("/observations")]


@pytest.fixture()
def provider(monkeypatch):
    fake = FakeProvider()
    monkeypatch.setenv("FRED_API_KEY", "test-key")
    monkeypatch.delenv("FRED_BASE_URL", raising=False)
    monkeypatch.setattr(fred, "fetch_json", fake)
    return fake


def monthly(year: int, values: list[Any], start_month: int = 1) -> list[dict[str, Any]]:
    """Raw observation records for consecutive months."""

    records = []
    for offset, value in enumerate(values):
        month = start_month + offset
        year_shift, month_index = divmod(month - 1, 12)
        records.append(
            {"date": f"{year + year_shift}-{month_index + 1:02d}-01", "value": str(value)}
        )
    return records


def gate_until(provider: FakeProvider, expected: int, timeout: float = 1.0):
    """Wrap ``provider`` so no call completes until ``expected`` calls are in flight.

    Requests issued one after another never reach the threshold and fail with
    ``TimeoutError``.
    """

    in_flight = 0
    everyone_waiting = asyncio.Event()

    async def gated(url: str, **kwargs: Any) -> Any:
        nonlocal in_flight
        in_flight += 1
        if in_flight >= expected:
            everyone_waiting.set()
        await asyncio.wait_for(everyone_waiting.wait(), timeout=timeout)
        return await provider(url, **kwargs)

    return gated
