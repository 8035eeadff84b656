"""Shared utilities for retrieving JSON payloads from the data provider."""

from __future__ import annotations

from typing import Any, Mapping

import httpx

DEFAULT_TIMEOUT_SECONDS = 30.0


Headers = Mapping[str, str] | None
Params = Mapping[str, Any] | None


async def fetch_json(
    url: str,
    *,
    headers: Headers = None,
    params: Params = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> Any:
    """Execute a GET request and return the decoded JSON payload.

    The interface stays close to ``httpx.AsyncClient.get`` so provider clients
    can forward endpoint-specific params. A non-success status raises
    ``httpx.HTTPStatusError``; requests are never retried.
    """

    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.get(url, headers=headers, params=params)

    response.raise_for_status()
    return response.json()


__all__ = ["fetch_json", "DEFAULT_TIMEOUT_SECONDS"]
