import asyncio

import pytest

import pipelines.sources.fred as fred
from conftest import monthly
from dashboard.config import Settings
from dashboard.session import DashboardSession, SessionError, SessionStatus

ATLANTA_QUERY = "Atlanta–Sandy Springs–Roswell, GA Unemployment Rate"


def _session(indicator, regions, api_key="test-key"):
    return DashboardSession(
        Settings(fred_api_key=api_key), indicator_key=indicator, region_codes=regions
    )


def test_housing_selection_uses_overrides_end_to_end(provider):
    provider.observations["ACTLISCOU33100"] = monthly(2024, [12000, 12500, "."])
    provider.observations["ACTLISCOU45300"] = monthly(2024, [8000, 8100, 8200])
    session = _session("HOUSING_HPI", ["33100", "45300"])

    status = asyncio.run(session.refresh())

    assert status is SessionStatus.READY
    assert session.error is None
    assert provider.searches() == []
    assert sorted(provider.fetched()) == ["ACTLISCOU33100", "ACTLISCOU45300"]
    trend = session.trend()
    assert len(trend.dates) == 3
    assert trend.per_region[0].values == [12000.0, 12500.0, None]
    assert session.table().mode == "multi"
    summary = session.summary()
    assert session.format_value(summary[0].latest_value) == "12,500"


def test_employment_rate_discovery_and_transform(provider):
    provider.search_results[ATLANTA_QUERY] = [
        {"id": "LAUMT131206000000003", "title": "Unemployment Rate in Atlanta-Sandy Springs-Roswell, GA (MSA)"},
    ]
    provider.observations["LAUMT131206000000003"] = [{"date": "2024-01-01", "value": "5.0"}]
    session = _session("EMP_RATE", ["12060"])

    asyncio.run(session.refresh())

    assert provider.searches() == [ATLANTA_QUERY]
    latest = session.summary()[0]
    assert latest.series_id == "LAUMT131206000000003"
    assert latest.latest_value == pytest.approx(95.0)
    assert session.format_value(latest.latest_value) == "95.0%"
    assert session.table().mode == "single"


def test_cached_series_are_never_refetched(provider):
    provider.observations["RGMP33100"] = monthly(2020, [1, 2, 3])
    provider.observations["RGMP45300"] = monthly(2020, [4, 5, 6])
    session = _session("GDP", ["33100"])

    asyncio.run(session.refresh())
    session.toggle_region("45300")
    asyncio.run(session.refresh())
    session.toggle_region("33100")
    session.toggle_region("33100")
    asyncio.run(session.refresh())

    assert provider.fetched() == ["RGMP33100", "RGMP45300"]
    assert session.region_codes == ["45300", "33100"]
    assert session.cache.has_series("RGMP33100")


def test_partial_fetch_failure_keeps_other_series(provider):
    provider.observations["RGMP33100"] = monthly(2020, [1, 2])
    provider.observations["RGMP45300"] = 500
    session = _session("GDP", ["33100", "45300"])

    status = asyncio.run(session.refresh())

    assert status is SessionStatus.ERROR
    assert session.error is SessionError.FETCH
    assert session.cache.has_series("RGMP33100")
    assert not session.cache.has_series("RGMP45300")
    assert session.summary()[1].latest_value is None


def test_missing_api_key_disables_fetching(provider, monkeypatch):
    monkeypatch.delenv("FRED_API_KEY", raising=False)
    session = _session("GDP", ["33100"], api_key=None)

    status = asyncio.run(session.refresh())

    assert status is SessionStatus.ERROR
    assert session.error is SessionError.CONFIGURATION
    assert provider.calls == []


def test_switching_indicator_drops_resolved_ids_and_series(provider):
    provider.search_results[ATLANTA_QUERY] = [
        {"id": "LAUMT131206000000003", "title": "Unemployment Rate"},
    ]
    provider.observations["LAUMT131206000000003"] = monthly(2024, [4.0])
    provider.observations["RGMP12060"] = monthly(2024, [500000])
    session = _session("EMP_RATE", ["12060"])

    asyncio.run(session.refresh())
    session.select_indicator("GDP")

    assert session.cache.resolved == {}
    assert session.cache.series == {}

    asyncio.run(session.refresh())
    session.select_indicator("EMP_RATE")
    asyncio.run(session.refresh())

    assert provider.searches() == [ATLANTA_QUERY, ATLANTA_QUERY]
    assert provider.fetched().count("LAUMT131206000000003") == 2


def test_stale_results_do_not_leak_into_new_indicator(provider, monkeypatch):
    provider.search_results[ATLANTA_QUERY] = [
        {"id": "LAUMT131206000000003", "title": "Unemployment Rate"},
    ]
    provider.observations["RGMP12060"] = monthly(2024, [500000])
    session = _session("EMP_RATE", ["12060"])

    async def scenario():
        gate = asyncio.Event()

        async def slow(url, **kwargs):
            await gate.wait()
            return await provider(url, **kwargs)

        monkeypatch.setattr(fred, "fetch_json", slow)
        in_flight = asyncio.create_task(session.refresh())
        await asyncio.sleep(0)
        session.select_indicator("GDP")
        gate.set()
        await in_flight
        await session.refresh()

    asyncio.run(scenario())

    assert session.cache.resolved == {}
    assert list(session.cache.series) == ["RGMP12060"]
    assert session.status is SessionStatus.READY


def test_unknown_indicator_is_rejected():
    session = _session("GDP", [])

    with pytest.raises(ValueError):
        session.select_indicator("NOPE")


def test_empty_selection_is_ready_without_requests(provider):
    session = _session("GDP", [])

    assert asyncio.run(session.refresh()) is SessionStatus.READY
    assert provider.calls == []
    assert session.table().rows == []


def test_switch_during_refresh_leaves_session_idle(provider, monkeypatch):
    provider.search_results[ATLANTA_QUERY] = [
        {"id": "LAUMT131206000000003", "title": "Unemployment Rate"},
    ]
    session = _session("EMP_RATE", ["12060"])
    seen = {}

    async def scenario():
        gate = asyncio.Event()

        async def slow(url, **kwargs):
            await gate.wait()
            return await provider(url, **kwargs)

        monkeypatch.setattr(fred, "fetch_json", slow)
        in_flight = asyncio.create_task(session.refresh())
        await asyncio.sleep(0)
        assert session.status is SessionStatus.RESOLVING
        session.select_indicator("GDP")
        gate.set()
        seen["returned"] = await in_flight
        seen["status"] = session.status
        seen["error"] = session.error

    asyncio.run(scenario())

    assert seen["returned"] is SessionStatus.IDLE
    assert seen["status"] is SessionStatus.IDLE
    assert seen["error"] is None
    assert session.indicator_key == "GDP"
