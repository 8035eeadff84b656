"""Canonical data model for observations and the views handed to the renderer."""

from __future__ import annotations

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class Observation(BaseModel):
    """A single cleaned point of a time series."""

    model_config = ConfigDict(frozen=True)

    date: dt.date = Field(..., description="Calendar date the value applies to (day granularity).")
    value: float = Field(..., description="Numeric value after the indicator transform.")


class SeriesCandidate(BaseModel):
    """Search hit returned by the provider's series search endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore", str_strip_whitespace=True)

    id: str = Field(..., description="Provider series identifier (e.g. 'LAUMT121260000000003').")
    title: str = Field("", description="Human-readable series title.")


class PlannedSeries(BaseModel):
    """A selected region paired with the series id it currently resolves to."""

    model_config = ConfigDict(frozen=True)

    region_code: str
    region_name: str
    series_id: Optional[str] = Field(
        default=None,
        description="Resolved provider id, or None while unresolved or after a discovery miss.",
    )


class RegionValues(BaseModel):
    region_code: str
    region: str
    series_id: Optional[str] = None
    values: list[Optional[float]] = Field(
        default_factory=list,
        description="One entry per axis date; None marks a gap, never zero.",
    )


class TrendView(BaseModel):
    """Dense date axis with one value vector per region."""

    dates: list[dt.date] = Field(default_factory=list)
    per_region: list[RegionValues] = Field(default_factory=list)


class LatestValue(BaseModel):
    region_code: str
    region: str
    series_id: Optional[str] = None
    latest_value: Optional[float] = None
    latest_date: Optional[dt.date] = None


class TableRow(BaseModel):
    date: dt.date
    values: list[Optional[float]]


class TableView(BaseModel):
    """Tabular view: whole recent history for one region, or a pivot for several."""

    mode: Literal["single", "multi"]
    regions: list[str] = Field(default_factory=list)
    dates: list[dt.date] = Field(default_factory=list)
    rows: list[TableRow] = Field(default_factory=list)


__all__ = [
    "Observation",
    "SeriesCandidate",
    "PlannedSeries",
    "RegionValues",
    "TrendView",
    "LatestValue",
    "TableRow",
    "TableView",
]
