"""Retrieve, clean and cache observations for resolved series ids."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from pipelines.errors import FetchFailure
from pipelines.model import Observation
from pipelines.sources.fred import FredClient
from storage.cache import SessionCache

logger = logging.getLogger(__name__)


@dataclass
class FetchBatch:
    """Outcome of one concurrent fetch round."""

    fetched: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failures: list[FetchFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class SeriesFetcher:
    def __init__(self, client: FredClient, cache: SessionCache) -> None:
        self.client = client
        self.cache = cache

    async def fetch(self, series_id: str, indicator: Any = None) -> list[Observation]:
        """Return the cleaned series, hitting the provider only on a cache miss."""

        if self.cache.has_series(series_id):
            return self.cache.get_series(series_id)

        transform = getattr(indicator, "transform_value", None)
        observations = await self.client.fetch_observations(series_id, transform=transform)
        self.cache.store_series(series_id, observations)
        logger.debug("Cached %s observations for %s.", len(observations), series_id)
        return self.cache.get_series(series_id)

    async def fetch_many(self, series_ids: Iterable[str | None], indicator: Any = None) -> FetchBatch:
        """Fetch every uncached id concurrently.

        A ``FetchFailure`` aborts only its own series; other exceptions
        propagate once the whole batch has settled.
        """

        ids = [series_id for series_id in series_ids if series_id]
        pending = self.cache.missing(ids)
        batch = FetchBatch(skipped=[series_id for series_id in dict.fromkeys(ids) if series_id not in pending])
        if not pending:
            return batch

        results = await asyncio.gather(
            *(self.fetch(series_id, indicator) for series_id in pending),
            return_exceptions=True,
        )

        unexpected: BaseException | None = None
        for series_id, result in zip(pending, results):
            if isinstance(result, FetchFailure):
                batch.failures.append(result)
            elif isinstance(result, BaseException):
                unexpected = unexpected or result
            else:
                batch.fetched.append(series_id)

        if batch.failures:
            logger.warning(
                "%s of %s series failed to load: %s",
                len(batch.failures),
                len(pending),
                ", ".join(failure.series_id for failure in batch.failures),
            )
        if unexpected is not None:
            raise unexpected
        return batch


__all__ = ["FetchBatch", "SeriesFetcher"]
