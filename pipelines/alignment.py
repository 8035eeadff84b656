"""Align cleaned series onto a shared date axis and derive the rendered views.

Everything here is a pure function of the planned series and the cached
observations, so re-running it on unchanged inputs gives identical output.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Mapping, Sequence

from pipelines.model import (
    LatestValue,
    Observation,
    PlannedSeries,
    RegionValues,
    TableRow,
    TableView,
    TrendView,
)

RECENT_WINDOW = 12
SINGLE_TABLE_LIMIT = 50

SeriesLookup = Mapping[str, Sequence[Observation]]


def _series_for(planned: PlannedSeries, series: SeriesLookup) -> Sequence[Observation]:
    if not planned.series_id:
        return []
    return series.get(planned.series_id, [])


def unified_dates(all_series: Iterable[Sequence[Observation]]) -> list[date]:
    """Sorted union of every date present in any of ``all_series``."""

    seen: set[date] = set()
    for observations in all_series:
        seen.update(observation.date for observation in observations)
    return sorted(seen)


def _values_on(axis: Sequence[date], observations: Sequence[Observation]) -> list[float | None]:
    lookup = {observation.date: observation.value for observation in observations}
    return [lookup.get(day) for day in axis]


def align(planned: Sequence[PlannedSeries], series: SeriesLookup) -> TrendView:
    """Full-history view: every unified date, one value vector per region."""

    axis = unified_dates(_series_for(item, series) for item in planned)
    return TrendView(
        dates=axis,
        per_region=[
            RegionValues(
                region_code=item.region_code,
                region=item.region_name,
                series_id=item.series_id,
                values=_values_on(axis, _series_for(item, series)),
            )
            for item in planned
        ],
    )


def recent_window(trend: TrendView, size: int = RECENT_WINDOW) -> TrendView:
    """Trim an aligned view to its last ``size`` dates."""

    if size <= 0:
        return TrendView(
            per_region=[region.model_copy(update={"values": []}) for region in trend.per_region]
        )
    return TrendView(
        dates=list(trend.dates[-size:]),
        per_region=[
            region.model_copy(update={"values": list(region.values[-size:])})
            for region in trend.per_region
        ],
    )


def latest_values(planned: Sequence[PlannedSeries], series: SeriesLookup) -> list[LatestValue]:
    rows: list[LatestValue] = []
    for item in planned:
        observations = _series_for(item, series)
        latest = observations[-1] if observations else None
        rows.append(
            LatestValue(
                region_code=item.region_code,
                region=item.region_name,
                series_id=item.series_id,
                latest_value=latest.value if latest else None,
                latest_date=latest.date if latest else None,
            )
        )
    return rows


def build_table(
    planned: Sequence[PlannedSeries],
    series: SeriesLookup,
    *,
    window: int = RECENT_WINDOW,
    single_limit: int = SINGLE_TABLE_LIMIT,
) -> TableView:
    """Single region: its most recent observations. Otherwise: last dates pivoted by region."""

    if len(planned) == 1:
        only = planned[0]
        observations = list(_series_for(only, series))[-single_limit:] if single_limit > 0 else []
        return TableView(
            mode="single",
            regions=[only.region_name],
            dates=[observation.date for observation in observations],
            rows=[TableRow(date=observation.date, values=[observation.value]) for observation in observations],
        )

    recent = recent_window(align(planned, series), window)
    rows = [
        TableRow(date=day, values=[region.values[index] for region in recent.per_region])
        for index, day in enumerate(recent.dates)
    ]
    return TableView(
        mode="multi",
        regions=[item.region_name for item in planned],
        dates=recent.dates,
        rows=rows,
    )


__all__ = [
    "RECENT_WINDOW",
    "SINGLE_TABLE_LIMIT",
    "unified_dates",
    "align",
    "recent_window",
    "latest_values",
    "build_table",
]
