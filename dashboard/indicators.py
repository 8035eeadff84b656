"""Indicator registry: how each indicator maps a region onto a FRED series."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Mapping, Sequence

from pipelines.model import SeriesCandidate

PickContext = Mapping[str, str]
PickFunction = Callable[[Sequence[SeriesCandidate], PickContext], "str | None"]


@dataclass(frozen=True)
class Indicator:
    """Computation rules for one indicator.

    ``series_id_for_cbsa`` is the deterministic naming pattern. Indicators with
    ``needs_discovery`` resolve through the provider search instead, using
    ``search_text`` to build the query and ``pick_series`` to choose a hit.
    """

    key: str
    label: str
    series_id_for_cbsa: Callable[[str], str]
    value_formatter: Callable[[float], str]
    transform_value: Callable[[float], float] | None = None
    needs_discovery: bool = False
    search_text: Callable[[str], str] | None = None
    pick_series: PickFunction | None = None

    def format(self, value: float | None, missing: str = "—") -> str:
        if value is None:
            return missing
        return self.value_formatter(value)


def _format_percent(value: float) -> str:
    return f"{float(value):.1f}%"


def _format_count(value: float) -> str:
    # Grouped thousands, up to three fraction digits, no trailing zeros.
    text = f"{float(value):,.3f}"
    return text.rstrip("0").rstrip(".")


def _matching(
    items: Sequence[SeriesCandidate], id_pattern: str, title_pattern: str
) -> list[SeriesCandidate]:
    id_re = re.compile(id_pattern, re.IGNORECASE)
    title_re = re.compile(title_pattern, re.IGNORECASE)
    return [item for item in items if id_re.search(item.id) and title_re.search(item.title)]


def pick_unemployment_series(items: Sequence[SeriesCandidate], ctx: PickContext) -> str | None:
    candidates = _matching(items, r"^LAUMT", r"Unemployment Rate")
    if candidates:
        return candidates[0].id
    return items[0].id if items else None


def pick_active_listings_series(items: Sequence[SeriesCandidate], ctx: PickContext) -> str | None:
    candidates = _matching(items, r"^ACTLISCOU", r"Active Listing Count")
    cbsa = (ctx or {}).get("cbsa")
    if cbsa:
        for candidate in candidates:
            if cbsa in candidate.id:
                return candidate.id
    if candidates:
        return candidates[0].id
    return items[0].id if items else None


INDICATORS: dict[str, Indicator] = {
    "EMP_RATE": Indicator(
        key="EMP_RATE",
        label="Employment Rate",
        series_id_for_cbsa=lambda cbsa: f"LAUMT12{cbsa}0000000003",
        transform_value=lambda value: 100 - float(value),
        value_formatter=_format_percent,
        needs_discovery=True,
        search_text=lambda msa_name: f"{msa_name} Unemployment Rate",
        pick_series=pick_unemployment_series,
    ),
    "HOUSING_HPI": Indicator(
        key="HOUSING_HPI",
        label="Housing Inventory: Active Listing Count",
        series_id_for_cbsa=lambda cbsa: f"ACTLISCOU{cbsa}",
        value_formatter=_format_count,
        needs_discovery=True,
        search_text=lambda msa_name: f"Housing Inventory: Active Listing Count in {msa_name}",
        pick_series=pick_active_listings_series,
    ),
    "GDP": Indicator(
        key="GDP",
        label="GDP",
        # BEA real GDP for metro areas.
        series_id_for_cbsa=lambda cbsa: f"RGMP{cbsa}",
        value_formatter=_format_count,
    ),
}

# Hand-curated ids for pairs where search results are ambiguous.
SERIES_OVERRIDES: dict[str, str] = {
    "HOUSING_HPI|33100": "ACTLISCOU33100",
    "HOUSING_HPI|45300": "ACTLISCOU45300",
    "HOUSING_HPI|36740": "ACTLISCOU36740",
}


def get_indicator(key: str) -> Indicator | None:
    return INDICATORS.get(key)


__all__ = [
    "Indicator",
    "INDICATORS",
    "SERIES_OVERRIDES",
    "get_indicator",
    "pick_unemployment_series",
    "pick_active_listings_series",
]
