import pytest

from conftest import monthly
from dashboard.__main__ import main


def test_list_indicators(capsys):
    assert main(["list-indicators"]) == 0

    out = capsys.readouterr().out
    assert "EMP_RATE: label='Employment Rate' resolution=discovery" in out
    assert "GDP: label='GDP' resolution=pattern" in out


def test_list_regions(capsys):
    assert main(["list-regions"]) == 0

    assert "12060: Atlanta–Sandy Springs–Roswell, GA" in capsys.readouterr().out


def test_show_prints_summary_and_comparison(provider, capsys):
    provider.observations["RGMP33100"] = monthly(2021, [1000, 2000])
    provider.observations["RGMP45300"] = monthly(2021, [500])

    assert main(["show", "--indicator", "GDP", "--regions", "33100,45300"]) == 0

    out = capsys.readouterr().out
    assert "Current GDP" in out
    assert "GDP — Comparison (last 12 periods)" in out
    assert "2021-02-01 | 2,000 | —" in out


def test_show_rejects_unknown_regions(provider):
    with pytest.raises(SystemExit):
        main(["show", "--indicator", "GDP", "--regions", "00000"])


def test_show_without_api_key(provider, monkeypatch, capsys):
    monkeypatch.delenv("FRED_API_KEY", raising=False)
    monkeypatch.setattr("dashboard.config.load_dotenv", lambda: False)

    assert main(["show", "--indicator", "GDP", "--regions", "33100"]) == 2
    assert "Missing API key" in capsys.readouterr().out
