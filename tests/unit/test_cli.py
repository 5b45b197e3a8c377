from __future__ import annotations

import json

import pytest
from rich.console import Console
from typer.testing import CliRunner

from salesview import main
from salesview.config import Settings
from salesview.domain.models import AgeRange, FilterOptions
from salesview.reporter import print_filter_options, print_probe_results
from salesview.service import SalesService
from tests.fakes import FakeSalesStore, make_rows

runner = CliRunner()


@pytest.fixture
def fake_service(monkeypatch):
    service = SalesService(FakeSalesStore(make_rows(40)), Settings(default_page_size=10))

    async def _with_service(action):
        return await action(service)

    monkeypatch.setattr(main, "_with_service", _with_service)
    # Keep log lines out of the captured JSON output.
    monkeypatch.setattr(main, "configure_logging", lambda **kwargs: None)
    return service


def test_info_lists_strategies() -> None:
    result = runner.invoke(main.app, ["info"])

    assert result.exit_code == 0
    assert "anchor_threshold=" in result.stdout
    assert "aggregated_window" in result.stdout


def test_probe_lists_strategies_without_a_database() -> None:
    result = runner.invoke(main.app, ["probe", "--strategy", "list"])

    assert result.exit_code == 0
    assert "keyset" in result.stdout


def test_probe_rejects_unknown_strategy() -> None:
    result = runner.invoke(main.app, ["probe", "--strategy", "bogus"])

    assert result.exit_code == 2


def test_page_rejects_malformed_filter() -> None:
    result = runner.invoke(main.app, ["page", "--filter", "customerRegion"])

    assert result.exit_code == 2


def test_page_prints_json(fake_service) -> None:
    result = runner.invoke(
        main.app, ["page", "--page", "2", "--limit", "5", "--filter", "gender=Female"]
    )

    assert result.exit_code == 0
    body = json.loads(result.stdout)
    assert [record["id"] for record in body["data"]] == [29, 27, 25, 23, 21]
    assert body["pagination"]["totalRecords"] == 20


def test_filters_prints_json(fake_service) -> None:
    result = runner.invoke(main.app, ["filters", "--json"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["genders"] == ["Female", "Male"]


def test_probe_results_table_is_sorted_by_duration() -> None:
    console = Console(record=True, width=160)
    results = [
        {"strategy": "direct_offset", "offset": 500_010, "rows": 10, "first_id": 9, "last_id": 1,
         "duration_seconds": 0.5, "rows_per_sec": 20.0, "peak_rss_bytes": 50 * 1024 * 1024, "cpu_percent": 12.5},
        {"strategy": "anchor_range", "offset": 500_010, "rows": 10, "first_id": 9, "last_id": 1,
         "duration_seconds": 0.1, "rows_per_sec": None, "peak_rss_bytes": None, "cpu_percent": None},
    ]

    print_probe_results(results, console=console)
    text = console.export_text()

    assert "Offset: 500,010" in text
    assert text.index("anchor_range") < text.index("direct_offset")
    assert "50.00" in text
    assert "Rows/s" in text
    assert "N/A" in text


def test_empty_probe_results() -> None:
    console = Console(record=True)

    print_probe_results([], console=console)

    assert "No results to display." in console.export_text()


def test_filter_options_table() -> None:
    console = Console(record=True, width=160)
    options = FilterOptions(
        customer_regions=("North",),
        genders=("Female", "Male"),
        tags=("organic", "wireless"),
        age_range=AgeRange(min=18, max=67),
    )

    print_filter_options(options, console=console)
    text = console.export_text()

    assert "Female, Male" in text
    assert "2 sampled" in text
    assert "18 - 67" in text
