"""St. Louis Fed (FRED) client: series search and observation cleaning."""

from __future__ import annotations

import logging
import math
import os
from datetime import date, datetime
from typing import Any, Callable, Mapping

from httpx import HTTPStatusError, TransportError

from pipelines.common import fetch_json
from pipelines.errors import ConfigurationError, FetchFailure
from pipelines.model import Observation, SeriesCandidate

DEFAULT_FRED_BASE_URL = "https://api.stlouisfed.org"
DEFAULT_SEARCH_LIMIT = 100

_SENTINEL_VALUES = {".", "NA", "N/A", ""}

logger = logging.getLogger(__name__)


def _resolve_api_key(api_key: str | None) -> str | None:
    return api_key or os.getenv("FRED_API_KEY")


def _parse_observation_date(raw_date: str) -> date | None:
    try:
        return date.fromisoformat(raw_date)
    except ValueError:
        try:
            return datetime.strptime(raw_date, "%Y-%m-%d").date()
        except ValueError:
            return None


def _coerce_float(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        numeric = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if stripped in _SENTINEL_VALUES:
            return None
        try:
            numeric = float(stripped)
        except ValueError:
            return None
    else:
        return None

    if math.isnan(numeric) or math.isinf(numeric):
        return None
    return numeric


def clean_observations(
    records: Any,
    transform: Callable[[float], float] | None = None,
) -> list[Observation]:
    """Normalize raw ``{date, value}`` records into a strictly ascending series.

    Records with a missing-value sentinel (``"."``) or an unparseable date are
    dropped before ``transform`` runs. When the provider repeats a date, the
    last record for that date wins.
    """

    if not isinstance(records, list):
        return []

    by_date: dict[date, float] = {}
    for record in records:
        if not isinstance(record, Mapping):
            continue
        observed = _parse_observation_date(str(record.get("date", "")))
        if observed is None:
            continue
        value = _coerce_float(record.get("value"))
        if value is None:
            continue
        if observed in by_date:
            logger.debug("Duplicate observation for %s; keeping the later record.", observed)
        by_date[observed] = transform(value) if transform else value

    return [Observation(date=day, value=by_date[day]) for day in sorted(by_date)]


class FredClient:
    """Thin async wrapper over the FRED search and observations endpoints."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> None:
        self.api_key = _resolve_api_key(api_key)
        self.base_url = (base_url or os.getenv("FRED_BASE_URL") or DEFAULT_FRED_BASE_URL).rstrip("/")
        self.search_limit = search_limit

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _require_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(
                "FRED API key missing. Set FRED_API_KEY or pass api_key explicitly."
            )
        return self.api_key

    async def search_series(self, search_text: str, *, limit: int | None = None) -> list[SeriesCandidate]:
        """Return candidate series for a full-text query, in provider order."""

        params = {
            "search_text": search_text,
            "limit": limit or self.search_limit,
            "api_key": self._require_key(),
            "file_type": "json",
        }
        payload = await fetch_json(f"{self.base_url}/fred/series/search", params=params)

        items = payload.get("seriess") if isinstance(payload, Mapping) else None
        if not isinstance(items, list):
            return []

        candidates: list[SeriesCandidate] = []
        for item in items:
            if not isinstance(item, Mapping) or not item.get("id"):
                continue
            candidates.append(SeriesCandidate(id=str(item["id"]), title=str(item.get("title") or "")))
        return candidates

    async def fetch_observations(
        self,
        series_id: str,
        *,
        transform: Callable[[float], float] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> list[Observation]:
        """Fetch and clean the full observation history of ``series_id``."""

        request_params: dict[str, Any] = {
            "series_id": series_id,
            "api_key": self._require_key(),
            "file_type": "json",
        }
        if params:
            request_params.update(params)

        try:
            payload = await fetch_json(
                f"{self.base_url}/fred/series/observations", params=request_params
            )
        except HTTPStatusError as exc:
            status = exc.response.status_code if exc.response is not None else None
            logger.warning("FRED observations request failed for %s status=%s.", series_id, status)
            raise FetchFailure(series_id, status) from exc
        except TransportError as exc:
            logger.warning("FRED observations request for %s could not complete: %s", series_id, exc)
            raise FetchFailure(series_id) from exc

        observations = payload.get("observations") if isinstance(payload, Mapping) else None
        return clean_observations(observations, transform)


__all__ = [
    "FredClient",
    "clean_observations",
    "DEFAULT_FRED_BASE_URL",
    "DEFAULT_SEARCH_LIMIT",
]
