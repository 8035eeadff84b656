"""In-memory session cache for resolved series ids and cleaned observations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from pipelines.model import Observation

logger = logging.getLogger(__name__)


def resolution_key(indicator_key: str, region_code: str) -> str:
    """Key shared by the override table and the discovered-id map."""

    return f"{indicator_key}|{region_code}"


@dataclass
class SessionCache:
    """Indicator-scoped state that lives for one dashboard session.

    ``resolved`` maps ``indicator|region`` to a discovered series id, or to
    ``None`` once discovery has been attempted and found nothing. ``series``
    maps a provider series id to its cleaned observations, so indicators that
    resolve to the same id share one entry.
    """

    resolved: dict[str, str | None] = field(default_factory=dict)
    series: dict[str, list[Observation]] = field(default_factory=dict)

    def has_resolution(self, indicator_key: str, region_code: str) -> bool:
        return resolution_key(indicator_key, region_code) in self.resolved

    def get_resolution(self, indicator_key: str, region_code: str) -> str | None:
        return self.resolved.get(resolution_key(indicator_key, region_code))

    def set_resolution(self, indicator_key: str, region_code: str, series_id: str | None) -> None:
        key = resolution_key(indicator_key, region_code)
        if key in self.resolved:
            # Resolutions are immutable for the session.
            return
        self.resolved[key] = series_id

    def has_series(self, series_id: str) -> bool:
        return series_id in self.series

    def get_series(self, series_id: str | None) -> list[Observation]:
        if not series_id:
            return []
        return self.series.get(series_id, [])

    def store_series(self, series_id: str, observations: Iterable[Observation]) -> None:
        if series_id in self.series:
            return
        self.series[series_id] = list(observations)

    def missing(self, series_ids: Iterable[str | None]) -> list[str]:
        """Distinct ids not yet cached, in first-seen order."""

        pending: list[str] = []
        for series_id in series_ids:
            if series_id and series_id not in self.series and series_id not in pending:
                pending.append(series_id)
        return pending

    def clear(self) -> None:
        logger.debug(
            "Clearing session cache (%s resolutions, %s series).",
            len(self.resolved),
            len(self.series),
        )
        self.resolved.clear()
        self.series.clear()


__all__ = ["SessionCache", "resolution_key"]
