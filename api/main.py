"""FastAPI service handing aligned indicator data to the browser chart renderer."""

from __future__ import annotations

import asyncio
import os
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from dashboard.colors import region_color
from dashboard.config import REGIONS, Settings, get_region_by_code
from dashboard.indicators import INDICATORS, get_indicator
from dashboard.session import DashboardSession

load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.session = DashboardSession(Settings.from_env())
    app.state.session_lock = asyncio.Lock()
    yield


app = FastAPI(title="Metro Indicators Dashboard API", version="0.1.0", lifespan=lifespan)


def _configure_cors() -> None:
    raw_origins = os.getenv("API_CORS_ORIGINS", "*")
    origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )


_configure_cors()


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/indicators")
def list_indicators() -> list[dict[str, Any]]:
    return [
        {"key": key, "label": indicator.label, "needs_discovery": indicator.needs_discovery}
        for key, indicator in INDICATORS.items()
    ]


@app.get("/regions")
def list_regions() -> list[dict[str, str]]:
    return [{"code": region.code, "name": region.name} for region in REGIONS]


def _parse_region_codes(raw: str | None) -> list[str] | None:
    if raw is None:
        return None
    codes = [item.strip() for item in raw.split(",") if item.strip()]
    unknown = [code for code in codes if get_region_by_code(code) is None]
    if unknown:
        raise HTTPException(status_code=404, detail=f"Unknown region codes: {', '.join(unknown)}")
    return codes


def _serialize_session(session: DashboardSession) -> dict[str, Any]:
    trend = session.trend()
    recent = session.recent()
    colors = {
        code: region_color(code, name) for code, name in session.regions
    }

    def _with_colors(view: dict[str, Any]) -> dict[str, Any]:
        for region in view["per_region"]:
            color = colors[region["region_code"]]
            region["border_color"] = color.border
            region["background_color"] = color.background
        return view

    summary = []
    for row in session.summary():
        item = row.model_dump(mode="json")
        item["display"] = session.format_value(row.latest_value)
        summary.append(item)

    return {
        "indicator": session.indicator_key,
        "label": session.indicator.label,
        "status": session.status.value,
        "error": session.error.value if session.error else None,
        "regions": [code for code, _ in session.regions],
        "trend": _with_colors(trend.model_dump(mode="json")),
        "recent": _with_colors(recent.model_dump(mode="json")),
        "summary": summary,
        "table": session.table().model_dump(mode="json"),
    }


@app.get("/dashboard")
async def get_dashboard(
    request: Request,
    indicator: str | None = Query(None, description="Indicator key (e.g. EMP_RATE, HOUSING_HPI, GDP)"),
    regions: str | None = Query(None, description="Comma-separated CBSA codes, in display order"),
):
    if indicator is not None and get_indicator(indicator) is None:
        raise HTTPException(status_code=404, detail=f"Unknown indicator key '{indicator}'")
    codes = _parse_region_codes(regions)

    session: DashboardSession = request.app.state.session
    # One selection at a time: the session is shared by every request.
    async with request.app.state.session_lock:
        if indicator is not None:
            session.select_indicator(indicator)
        if codes is not None:
            session.set_regions(codes)

        await session.refresh()
        return _serialize_session(session)
