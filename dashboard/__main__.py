"""Command-line entrypoint: inspect registries and render a selection as text."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from typing import Iterable

from dashboard.config import Region, Settings, get_region_by_code, iter_regions
from dashboard.indicators import INDICATORS, Indicator
from dashboard.session import DashboardSession, SessionError


def _format_indicator(indicator: Indicator) -> str:
    mode = "discovery" if indicator.needs_discovery else "pattern"
    return f"{indicator.key}: label='{indicator.label}' resolution={mode}"


def _format_region(region: Region) -> str:
    return f"{region.code}: {region.name}"


def _resolve_regions_from_cli(codes: Iterable[str]) -> list[str]:
    codes = list(codes)
    unknown = [code for code in codes if get_region_by_code(code) is None]
    if unknown:
        raise SystemExit(f"Unknown region codes: {', '.join(sorted(unknown))}")
    return codes


def render(session: DashboardSession) -> list[str]:
    """Summary block followed by the table, as printable lines."""

    indicator = session.indicator
    lines = [f"Current {indicator.label}"]
    for row in session.summary():
        when = row.latest_date.isoformat() if row.latest_date else "No data"
        lines.append(f"  {row.region}: {session.format_value(row.latest_value)} ({when})")

    table = session.table()
    if table.mode == "single":
        lines.append(f"{indicator.label} — All Observations (last {session.settings.single_table_limit})")
        header = ["Date", "Value"]
    else:
        lines.append(f"{indicator.label} — Comparison (last {session.settings.recent_window} periods)")
        header = ["Date", *table.regions]
    lines.append(" | ".join(header))
    for row in table.rows:
        cells = [session.format_value(value) for value in row.values]
        lines.append(" | ".join([row.date.isoformat(), *cells]))
    return lines


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Metro indicators dashboard")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list-indicators", help="Show configured indicators")
    subparsers.add_parser("list-regions", help="Show selectable regions")

    show_parser = subparsers.add_parser("show", help="Fetch and print one indicator for a set of regions")
    show_parser.add_argument("--indicator", choices=sorted(INDICATORS), help="Indicator key")
    show_parser.add_argument(
        "--regions",
        help="Comma-separated CBSA codes (defaults to the dashboard's initial selection)",
    )
    show_parser.add_argument(
        "--log-level",
        help="Override LOG_LEVEL for this invocation (e.g. DEBUG, INFO)",
    )

    args = parser.parse_args(argv)

    if args.command == "list-indicators":
        for indicator in INDICATORS.values():
            print(_format_indicator(indicator))
        return 0

    if args.command == "list-regions":
        for region in iter_regions():
            print(_format_region(region))
        return 0

    if args.command == "show":
        if args.log_level:
            os.environ["LOG_LEVEL"] = args.log_level
        logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

        codes = None
        if args.regions:
            codes = _resolve_regions_from_cli(
                item.strip() for item in args.regions.split(",") if item.strip()
            )
        session = DashboardSession(Settings.from_env(), indicator_key=args.indicator, region_codes=codes)
        if not session.region_codes:
            print("No data to display. Select at least one region.")
            return 0

        asyncio.run(session.refresh())
        if session.error is SessionError.CONFIGURATION:
            print("Missing API key. Add FRED_API_KEY to your .env file.")
            return 2
        for line in render(session):
            print(line)
        if session.error is not None:
            print("Some series could not be loaded.")
            return 1
        return 0

    parser.error("Unknown command")
    return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
