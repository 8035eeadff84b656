"""Map an (indicator, region) pair onto a concrete provider series id."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Mapping, Sequence

from httpx import HTTPStatusError, TransportError

from pipelines.model import PlannedSeries
from pipelines.sources.fred import FredClient
from storage.cache import SessionCache, resolution_key

logger = logging.getLogger(__name__)

RegionRef = tuple[str, str]


class SeriesResolver:
    """Resolve series ids with overrides first, then the session map, then discovery.

    ``indicator`` arguments are registry entries exposing ``key``,
    ``needs_discovery``, ``series_id_for_cbsa`` and, for discovered indicators,
    ``search_text`` and ``pick_series``. Regions are ``(code, display name)``
    pairs.
    """

    def __init__(
        self,
        client: FredClient,
        cache: SessionCache,
        overrides: Mapping[str, str] | None = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.overrides = dict(overrides or {})

    def known_id(self, indicator: Any, region_code: str) -> str | None:
        """Series id available without any network call, if there is one."""

        override = self.overrides.get(resolution_key(indicator.key, region_code))
        if override:
            return override
        if self.cache.has_resolution(indicator.key, region_code):
            return self.cache.get_resolution(indicator.key, region_code)
        if not indicator.needs_discovery:
            return indicator.series_id_for_cbsa(region_code)
        return None

    def needs_discovery(self, indicator: Any, region_code: str) -> bool:
        if not indicator.needs_discovery:
            return False
        if resolution_key(indicator.key, region_code) in self.overrides:
            return False
        return not self.cache.has_resolution(indicator.key, region_code)

    def plan(self, indicator: Any, regions: Iterable[RegionRef]) -> list[PlannedSeries]:
        """Pair every selected region with its currently known series id."""

        return [
            PlannedSeries(
                region_code=code,
                region_name=name,
                series_id=self.known_id(indicator, code),
            )
            for code, name in regions
        ]

    async def discover(self, indicator: Any, region_code: str, region_name: str) -> str | None:
        """Search the provider catalog and pick one candidate.

        Returns ``None`` when the search fails or yields no candidates; a miss
        is not an error and the region simply has no data.
        """

        query = indicator.search_text(region_name) if indicator.search_text else region_name
        try:
            candidates = await self.client.search_series(query)
        except (HTTPStatusError, TransportError, ValueError) as exc:
            logger.warning(
                "Series search failed for %s (%s): %s. Treating as no data.",
                indicator.key,
                region_code,
                exc,
            )
            return None

        if not candidates:
            logger.info("No series found for %s in %s (query=%r).", indicator.key, region_code, query)
            return None

        if indicator.pick_series:
            picked = indicator.pick_series(candidates, {"cbsa": region_code, "msa_name": region_name})
        else:
            picked = candidates[0].id
        logger.debug("Discovered %s for %s|%s.", picked, indicator.key, region_code)
        return picked or None

    async def resolve(self, indicator: Any, region_code: str, region_name: str | None = None) -> str | None:
        if not self.needs_discovery(indicator, region_code):
            return self.known_id(indicator, region_code)

        series_id = await self.discover(indicator, region_code, region_name or region_code)
        # Misses are recorded too, so discovery runs at most once per key.
        self.cache.set_resolution(indicator.key, region_code, series_id)
        return self.cache.get_resolution(indicator.key, region_code)

    async def resolve_many(self, indicator: Any, regions: Sequence[RegionRef]) -> dict[str, str | None]:
        """Resolve all regions, running the discovery searches concurrently."""

        unique: dict[str, str] = {}
        for code, name in regions:
            unique.setdefault(code, name)

        resolved = await asyncio.gather(
            *(self.resolve(indicator, code, name) for code, name in unique.items())
        )
        return dict(zip(unique, resolved))


__all__ = ["SeriesResolver"]
