"""Static region configuration and environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable

from dotenv import load_dotenv

DEFAULT_RECENT_WINDOW = 12
DEFAULT_SINGLE_TABLE_LIMIT = 50


@dataclass(frozen=True)
class Region:
    """A metropolitan area users can select, keyed by its CBSA code."""

    name: str
    code: str


REGIONS: tuple[Region, ...] = (
    Region(name="Miami–Fort Lauderdale–West Palm Beach, FL", code="33100"),
    Region(name="Tampa–St. Petersburg–Clearwater, FL", code="45300"),
    Region(name="Orlando–Kissimmee–Sanford, FL", code="36740"),
    Region(name="Atlanta–Sandy Springs–Roswell, GA", code="12060"),
)

DEFAULT_REGION_CODES: tuple[str, ...] = (REGIONS[0].code, REGIONS[1].code)


def get_region_by_code(code: str) -> Region | None:
    for region in REGIONS:
        if region.code == code:
            return region
    return None


def region_name(code: str) -> str:
    """Display name for ``code``, falling back to the code itself."""

    region = get_region_by_code(code)
    return region.name if region else code


def iter_regions(codes: Iterable[str] | None = None) -> Iterable[Region]:
    if codes is None:
        return REGIONS
    selected = []
    for code in codes:
        region = get_region_by_code(code)
        if region:
            selected.append(region)
    return tuple(selected)


@dataclass(frozen=True)
class Settings:
    """Runtime settings read from the environment (and a local ``.env``)."""

    fred_api_key: str | None = None
    fred_base_url: str | None = None
    default_indicator: str = "EMP_RATE"
    recent_window: int = DEFAULT_RECENT_WINDOW
    single_table_limit: int = DEFAULT_SINGLE_TABLE_LIMIT

    @property
    def has_api_key(self) -> bool:
        return bool(self.fred_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            fred_api_key=os.getenv("FRED_API_KEY") or None,
            fred_base_url=os.getenv("FRED_BASE_URL") or None,
            default_indicator=os.getenv("DEFAULT_INDICATOR", "EMP_RATE"),
            recent_window=int(os.getenv("RECENT_WINDOW", str(DEFAULT_RECENT_WINDOW))),
            single_table_limit=int(
                os.getenv("SINGLE_TABLE_LIMIT", str(DEFAULT_SINGLE_TABLE_LIMIT))
            ),
        )


__all__ = [
    "Region",
    "REGIONS",
    "DEFAULT_REGION_CODES",
    "Settings",
    "get_region_by_code",
    "region_name",
    "iter_regions",
]
