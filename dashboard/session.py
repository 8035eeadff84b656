"""Dashboard session: selection state, the refresh pipeline and derived views."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable

from dashboard.config import DEFAULT_REGION_CODES, Settings, region_name
from dashboard.indicators import INDICATORS, SERIES_OVERRIDES, Indicator
from pipelines.alignment import align, build_table, latest_values, recent_window
from pipelines.errors import ConfigurationError
from pipelines.fetcher import SeriesFetcher
from pipelines.model import LatestValue, PlannedSeries, TableView, TrendView
from pipelines.resolver import SeriesResolver
from pipelines.sources.fred import FredClient
from storage.cache import SessionCache

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    FETCHING = "fetching"
    READY = "ready"
    ERROR = "error"


class SessionError(str, Enum):
    CONFIGURATION = "configuration"
    FETCH = "fetch"
    PIPELINE = "pipeline"


class DashboardSession:
    """One user's view of the dashboard.

    The selected indicator scopes every cached value: switching it drops the
    resolved ids and the cached series and bumps ``generation``. A refresh that
    started under an older generation finishes against the cache it started
    with, which is no longer reachable, so its results never leak into the
    newly selected indicator.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        client: FredClient | None = None,
        indicator_key: str | None = None,
        region_codes: Iterable[str] | None = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.client = client or FredClient(
            self.settings.fred_api_key, base_url=self.settings.fred_base_url
        )
        key = indicator_key or self.settings.default_indicator
        if key not in INDICATORS:
            raise ValueError(f"Unknown indicator key '{key}'")
        self.indicator_key = key
        self.region_codes: list[str] = []
        self.set_regions(DEFAULT_REGION_CODES if region_codes is None else region_codes)
        self.status = SessionStatus.IDLE
        self.error: SessionError | None = None
        self.generation = 0
        self._reset_cache()

    def _reset_cache(self) -> None:
        self.cache = SessionCache()
        self.resolver = SeriesResolver(self.client, self.cache, SERIES_OVERRIDES)
        self.fetcher = SeriesFetcher(self.client, self.cache)

    @property
    def indicator(self) -> Indicator:
        return INDICATORS[self.indicator_key]

    @property
    def configured(self) -> bool:
        return self.client.configured

    @property
    def regions(self) -> list[tuple[str, str]]:
        return [(code, region_name(code)) for code in self.region_codes]

    # Selection -----------------------------------------------------------------

    def select_indicator(self, key: str) -> None:
        if key not in INDICATORS:
            raise ValueError(f"Unknown indicator key '{key}'")
        if key == self.indicator_key:
            return
        logger.info("Switching indicator %s -> %s; dropping cached series.", self.indicator_key, key)
        self.indicator_key = key
        self.generation += 1
        self.cache.clear()
        self._reset_cache()
        self.status = SessionStatus.IDLE
        self.error = None

    def toggle_region(self, code: str) -> None:
        if code in self.region_codes:
            self.region_codes.remove(code)
        else:
            self.region_codes.append(code)

    def set_regions(self, codes: Iterable[str]) -> None:
        self.region_codes = list(dict.fromkeys(code for code in codes if code))

    def clear_regions(self) -> None:
        self.region_codes = []

    # Pipeline --------------------------------------------------------------------

    async def refresh(self) -> SessionStatus:
        """Resolve, then fetch whatever the current selection is missing."""

        generation = self.generation
        indicator = self.indicator
        resolver, fetcher = self.resolver, self.fetcher
        self.error = None

        if not self.configured:
            logger.warning("FRED API key missing; fetching is disabled.")
            self.error = SessionError.CONFIGURATION
            self.status = SessionStatus.ERROR
            return self.status

        regions = self.regions
        try:
            self.status = SessionStatus.RESOLVING
            if indicator.needs_discovery:
                await resolver.resolve_many(indicator, regions)
            if generation != self.generation:
                logger.info("Discarding stale resolution for %s.", indicator.key)
                return self.status

            self.status = SessionStatus.FETCHING
            planned = resolver.plan(indicator, regions)
            batch = await fetcher.fetch_many((item.series_id for item in planned), indicator)
            if generation != self.generation:
                logger.info("Discarding stale fetch for %s.", indicator.key)
                return self.status
        except ConfigurationError as exc:
            logger.error("%s", exc)
            if generation == self.generation:
                self.error = SessionError.CONFIGURATION
                self.status = SessionStatus.ERROR
            return self.status
        except Exception:
            logger.exception("Refresh failed for %s.", indicator.key)
            if generation == self.generation:
                self.error = SessionError.PIPELINE
                self.status = SessionStatus.ERROR
            return self.status

        if batch.failures:
            self.error = SessionError.FETCH
            self.status = SessionStatus.ERROR
        else:
            self.status = SessionStatus.READY
        return self.status

    # Views -----------------------------------------------------------------------

    def planned(self) -> list[PlannedSeries]:
        return self.resolver.plan(self.indicator, self.regions)

    def trend(self) -> TrendView:
        return align(self.planned(), self.cache.series)

    def recent(self) -> TrendView:
        return recent_window(self.trend(), self.settings.recent_window)

    def summary(self) -> list[LatestValue]:
        return latest_values(self.planned(), self.cache.series)

    def table(self) -> TableView:
        return build_table(
            self.planned(),
            self.cache.series,
            window=self.settings.recent_window,
            single_limit=self.settings.single_table_limit,
        )

    def format_value(self, value: float | None) -> str:
        return self.indicator.format(value)


__all__ = ["DashboardSession", "SessionStatus", "SessionError"]
