from __future__ import annotations

import logging

import pytest

from salesview.config import Settings
from salesview.domain import fields
from salesview.domain.models import FilterSpec, PageRequest, SortDirection
from salesview.paginator import Paginator, build_predicate, probe_strategies
from salesview.query.predicates import build_search_predicate
from salesview.strategies import StrategyKind
from tests.fakes import FakeSalesStore, make_rows, predicate_matches

TOTAL = 700_000


class _FlakyStore(FakeSalesStore):
    """Returns nothing for the first `empty_finds` full-row finds."""

    def __init__(self, rows, empty_finds: int = 1, **kwargs) -> None:
        super().__init__(rows, **kwargs)
        self.empty_finds = empty_finds

    async def find(self, predicate, *, sort, skip=0, limit=None, fields=None, timeout_ms):
        rows = await super().find(
            predicate, sort=sort, skip=skip, limit=limit, fields=fields, timeout_ms=timeout_ms
        )
        if fields is None and self.empty_finds > 0:
            self.empty_finds -= 1
            return []
        return rows


def _ids(page) -> list:
    return [record["id"] for record in page["records"]]


def _expected_ids(rows, request: PageRequest) -> list:
    predicate = build_predicate(request)
    matched = sorted(
        (row[fields.TRANSACTION_ID] for row in rows if predicate_matches(predicate, row)),
        reverse=request.sort_order is SortDirection.DESC,
    )
    return matched[request.offset : request.offset + request.limit]


@pytest.mark.asyncio
async def test_first_page_of_700k_records(large_rows) -> None:
    store = FakeSalesStore(large_rows)
    paginator = Paginator(store, settings=Settings())

    page = await paginator.get_page(PageRequest(page=1, limit=10))

    assert _ids(page) == list(range(TOTAL, TOTAL - 10, -1))
    meta = page["pagination"]
    assert meta.total_pages == 70_000
    assert meta.total_records == TOTAL
    assert meta.current_page == 1
    assert meta.has_previous_page is False
    assert meta.has_next_page is True
    assert store.calls["count"] == 0


@pytest.mark.asyncio
async def test_page_past_the_end_is_empty_and_clamped(large_rows) -> None:
    store = FakeSalesStore(large_rows)
    paginator = Paginator(store, settings=Settings())

    page = await paginator.get_page(PageRequest(page=999_999, limit=10))

    assert page["records"] == []
    assert page["pagination"].current_page == 70_000
    assert page["pagination"].has_next_page is False
    assert store.calls["find"] == 0


@pytest.mark.asyncio
async def test_deep_page_uses_anchor_range(large_rows) -> None:
    store = FakeSalesStore(large_rows)
    paginator = Paginator(store, settings=Settings())
    request = PageRequest(page=60_000, limit=10)

    assert paginator.choose(request) is StrategyKind.ANCHOR_RANGE
    page = await paginator.get_page(request)

    assert _ids(page) == list(range(100_010, 100_000, -1))
    assert page["pagination"].current_page == 60_000


@pytest.mark.asyncio
@pytest.mark.parametrize("optimized", [False, True])
@pytest.mark.parametrize("direction", [SortDirection.ASC, SortDirection.DESC])
async def test_pages_are_continuous_across_the_threshold(small_settings, optimized, direction) -> None:
    rows = make_rows(300)
    store = FakeSalesStore(rows)
    paginator = Paginator(store, settings=small_settings)
    filters = FilterSpec(product_category=("Electronics", "Beauty"))

    for number in range(1, 12):
        request = PageRequest(
            page=number, limit=10, sort_order=direction, filters=filters, optimized=optimized
        )
        page = await paginator.get_page(request)
        assert _ids(page) == _expected_ids(rows, request), f"page {number}"

    assert store.calls["window" if optimized else "count"] > 0


@pytest.mark.asyncio
@pytest.mark.parametrize("direction", [SortDirection.ASC, SortDirection.DESC])
async def test_date_sorted_pages_are_continuous_across_the_threshold(small_settings, direction) -> None:
    # Dates wrap every 365 identifiers, so date order differs from identifier order.
    rows = make_rows(500)
    store = FakeSalesStore(rows)
    paginator = Paginator(store, settings=small_settings)
    filters = FilterSpec(product_category=("Electronics", "Beauty"))
    predicate = build_predicate(PageRequest(filters=filters))
    expected = [
        row[fields.TRANSACTION_ID]
        for row in sorted(
            (row for row in rows if predicate_matches(predicate, row)),
            key=lambda row: (row[fields.DATE], row[fields.TRANSACTION_ID]),
            reverse=direction is SortDirection.DESC,
        )
    ]

    for number in range(1, 12):
        request = PageRequest(
            page=number, limit=10, sort_by="date", sort_order=direction, filters=filters
        )
        page = await paginator.get_page(request)
        start = (number - 1) * 10
        assert _ids(page) == expected[start : start + 10], f"page {number}"

    assert paginator.choose(PageRequest(page=11, limit=10, sort_by="date")) is StrategyKind.ANCHOR_RANGE


@pytest.mark.asyncio
async def test_requested_sort_column_applies_to_shallow_pages(fake_store, small_settings) -> None:
    paginator = Paginator(fake_store, settings=small_settings)

    page = await paginator.get_page(
        PageRequest(page=1, limit=20, sort_by="age", sort_order=SortDirection.ASC)
    )

    ages = [record["age"] for record in page["records"]]
    assert ages == sorted(ages)
    assert ages[0] == 18


@pytest.mark.asyncio
async def test_identical_requests_produce_identical_pages(fake_store, small_settings) -> None:
    paginator = Paginator(fake_store, settings=small_settings)
    request = PageRequest(page=7, limit=10, search="acme", filters=FilterSpec(gender=("Male",)))

    assert await paginator.get_page(request) == await paginator.get_page(request)


@pytest.mark.asyncio
async def test_numeric_search_finds_identifier_and_text_matches(fake_store, sample_rows) -> None:
    paginator = Paginator(fake_store, settings=Settings())

    page = await paginator.get_page(PageRequest(page=1, limit=250, search="42"))

    predicate = build_search_predicate("42")
    expected = [row for row in sample_rows if predicate_matches(predicate, row)]
    assert 42 in _ids(page)
    assert page["pagination"].total_records == len(expected)


@pytest.mark.asyncio
async def test_empty_window_for_valid_page_retries_with_identifier_scan(sample_rows, caplog) -> None:
    store = _FlakyStore(sample_rows)
    paginator = Paginator(store, settings=Settings())
    request = PageRequest(page=2, limit=5, filters=FilterSpec(gender=("Female",)))

    with caplog.at_level(logging.WARNING, logger="salesview.paginator"):
        page = await paginator.get_page(request)

    # Retry is a plain ascending identifier scan at the same offset.
    female_ids = sorted(row[fields.TRANSACTION_ID] for row in sample_rows if row[fields.GENDER] == "Female")
    assert _ids(page) == female_ids[5:10]
    assert store.calls["find"] == 2
    assert "retrying with identifier scan" in caplog.text


@pytest.mark.asyncio
async def test_no_retry_for_an_empty_last_page(sample_rows) -> None:
    store = _FlakyStore(sample_rows)
    paginator = Paginator(store, settings=Settings())
    request = PageRequest(page=25, limit=5, filters=FilterSpec(gender=("Female",)))

    page = await paginator.get_page(request)

    assert page["pagination"].total_pages == 25
    assert page["records"] == []
    assert store.calls["find"] == 1


@pytest.mark.asyncio
async def test_no_retry_when_nothing_matches(sample_rows) -> None:
    store = _FlakyStore(sample_rows)
    paginator = Paginator(store, settings=Settings())

    page = await paginator.get_page(PageRequest(page=1, filters=FilterSpec(gender=("Unknown",))))

    assert page["records"] == []
    assert page["pagination"].total_records == 0
    assert page["pagination"].total_pages == 1
    assert store.calls["find"] == 1


@pytest.mark.asyncio
async def test_get_range_walks_with_cursor(fake_store) -> None:
    paginator = Paginator(fake_store, settings=Settings())

    first = await paginator.get_range(PageRequest(limit=4))
    following = await paginator.get_range(PageRequest(limit=4, cursor=first["lastId"]))

    assert [r["id"] for r in first["records"]] == [250, 249, 248, 247]
    assert first["lastId"] == 247
    assert [r["id"] for r in following["records"]] == [246, 245, 244, 243]
    assert following["totalRecords"] == 250


@pytest.mark.asyncio
async def test_get_range_past_the_end_has_no_cursor(fake_store) -> None:
    paginator = Paginator(fake_store, settings=Settings())

    result = await paginator.get_range(PageRequest(limit=4, cursor=1))

    assert result["records"] == []
    assert result["lastId"] is None


@pytest.mark.asyncio
async def test_probe_strategies_agree_on_the_same_page(fake_store, small_settings) -> None:
    paginator = Paginator(fake_store, settings=small_settings)

    results = await probe_strategies(paginator, PageRequest(page=9, limit=10))

    assert [r["strategy"] for r in results] == ["direct_offset", "anchor_range", "aggregated_window"]
    assert {(r["rows"], r["first_id"], r["last_id"]) for r in results} == {(10, 170, 161)}
    assert all(r["duration_seconds"] >= 0 for r in results)
