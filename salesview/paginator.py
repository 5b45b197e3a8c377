"""
Adaptive pagination over the sales dataset.

Turns a `PageRequest` into a predicate, resolves the total count, picks a
retrieval strategy from the paging depth, runs it and projects the rows.

Usage:
    from salesview.paginator import Paginator

    paginator = Paginator(store, CountEstimator(store))
    page = await paginator.get_page(PageRequest(page=3, limit=25))
    print(page["pagination"].total_pages)

Strategy selection depends only on the offset and on which path was asked for:

- standard path: direct offset up to `anchor_threshold`, anchor range beyond it;
- optimized path: direct offset up to `window_threshold`, aggregated window beyond it.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Iterable, List, Optional

from salesview.config import Settings, get_settings
from salesview.domain import fields
from salesview.domain.models import Page, PageRequest, PaginationMeta, RangePage, SortDirection
from salesview.projection import normalize_projected, project_record
from salesview.query.counting import CountEstimator
from salesview.query.predicates import (
    Predicate,
    build_filter_predicate,
    build_search_predicate,
    combine_predicates,
)
from salesview.query.store import SalesStore
from salesview.strategies.abstract import PageQuery, PageStrategy, PageWindow, StrategyKind
from salesview.strategies.aggregated_window import AggregatedWindowStrategy
from salesview.strategies.anchor_range import AnchorRangeStrategy
from salesview.strategies.direct_offset import DirectOffsetStrategy
from salesview.strategies.keyset import KeysetStrategy
from salesview.utils.logging import get_logger
from salesview.utils.profiler import profile_block

log = get_logger(__name__)

# Keyset needs a client-held cursor, so it is only probed on request.
_PROBE_KINDS = (
    StrategyKind.DIRECT_OFFSET,
    StrategyKind.ANCHOR_RANGE,
    StrategyKind.AGGREGATED_WINDOW,
)


def choose_strategy(
    offset: int,
    *,
    optimized: bool = False,
    anchor_threshold: int = 500_000,
    window_threshold: int = 100_000,
) -> StrategyKind:
    """
    Pick the retrieval strategy for a page starting at `offset`.

    Parameters
    ----------
    offset : int
        Number of matching rows before the page.
    optimized : bool
        Whether the optimized (aggregated window) path was requested.
    anchor_threshold : int
        Deepest offset still served by a plain skip on the standard path.
    window_threshold : int
        Deepest offset still served by a plain skip on the optimized path.
    """
    if optimized:
        if offset > window_threshold:
            return StrategyKind.AGGREGATED_WINDOW
        return StrategyKind.DIRECT_OFFSET
    if offset > anchor_threshold:
        return StrategyKind.ANCHOR_RANGE
    return StrategyKind.DIRECT_OFFSET


def build_predicate(request: PageRequest) -> Predicate:
    """Combine the request's filters and search token into one predicate."""
    return combine_predicates(
        build_filter_predicate(request.filters),
        build_search_predicate(request.search),
    )


def _strategy_factories(
    store: SalesStore, settings: Settings
) -> Dict[StrategyKind, Callable[[], PageStrategy]]:
    """Registry of available strategies."""
    return {
        StrategyKind.DIRECT_OFFSET: lambda: DirectOffsetStrategy(
            store, timeout_ms=settings.query_timeout_ms
        ),
        StrategyKind.ANCHOR_RANGE: lambda: AnchorRangeStrategy(
            store,
            timeout_ms=settings.query_timeout_ms,
            lookup_timeout_ms=settings.anchor_lookup_timeout_ms,
        ),
        StrategyKind.AGGREGATED_WINDOW: lambda: AggregatedWindowStrategy(
            store, timeout_ms=settings.window_timeout_ms
        ),
        StrategyKind.KEYSET: lambda: KeysetStrategy(store, timeout_ms=settings.scan_timeout_ms),
    }


def available_strategies() -> List[str]:
    """List available strategy names."""
    return sorted(kind.value for kind in StrategyKind)


class Paginator:
    """
    Serve pages of projected records with clamped pagination metadata.

    Holds no state between calls; identical requests over an unchanged dataset
    produce identical pages.
    """

    def __init__(
        self,
        store: SalesStore,
        estimator: Optional[CountEstimator] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store
        self.estimator = estimator or CountEstimator(store, self.settings.count_timeout_ms)
        self._strategies = {
            kind: factory() for kind, factory in _strategy_factories(store, self.settings).items()
        }

    def choose(self, request: PageRequest) -> StrategyKind:
        return choose_strategy(
            request.offset,
            optimized=request.optimized,
            anchor_threshold=self.settings.anchor_threshold,
            window_threshold=self.settings.window_threshold,
        )

    def build_query(self, request: PageRequest, predicate: Optional[Predicate] = None) -> PageQuery:
        return PageQuery(
            predicate=predicate if predicate is not None else build_predicate(request),
            sort_field=fields.resolve_sort_field(request.sort_by),
            direction=request.sort_order,
            offset=request.offset,
            limit=request.limit,
            cursor=request.cursor,
        )

    async def execute(self, kind: StrategyKind, query: PageQuery) -> PageWindow:
        """Run one strategy and log how long it took."""
        strategy = self._strategies[kind]
        start = time.perf_counter()
        window = await strategy.fetch(query)
        log.info(
            f"[STRATEGY] {strategy.name}",
            extra={
                "strategy": strategy.name,
                "offset": query.offset,
                "limit": query.limit,
                "rows": len(window["rows"]),
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return window

    async def _fallback_scan(self, query: PageQuery) -> PageWindow:
        fallback = PageQuery(
            predicate=query.predicate,
            sort_field=fields.TRANSACTION_ID,
            direction=SortDirection.ASC,
            offset=query.offset,
            limit=query.limit,
        )
        return await self.execute(StrategyKind.DIRECT_OFFSET, fallback)

    async def get_page(self, request: PageRequest) -> Page:
        """
        Serve one numbered page.

        A page past the end is not an error: it comes back empty with metadata
        pointing at the last valid page.
        """
        predicate = build_predicate(request)
        count = await self.estimator.estimate_total(predicate)
        meta = PaginationMeta.for_page(request.page, count.count, request.limit)

        if request.page > meta.total_pages:
            log.info(
                "Requested page beyond total pages, returning empty page",
                extra={"page": request.page, "total_pages": meta.total_pages},
            )
            return Page(records=[], pagination=meta)

        kind = self.choose(request)
        query = self.build_query(request, predicate)
        window = await self.execute(kind, query)

        if not window["rows"] and count.count > 0 and meta.current_page < meta.total_pages:
            log.warning(
                "Empty window for a valid page, retrying with identifier scan",
                extra={"page": meta.current_page, "strategy": kind.value},
            )
            window = await self._fallback_scan(query)

        records = [
            normalize_projected(row) if window["projected"] else project_record(row)
            for row in window["rows"]
        ]
        log.info(
            "Page served",
            extra={
                "page": meta.current_page,
                "total_pages": meta.total_pages,
                "total_records": meta.total_records,
                "exact_count": count.exact,
                "records": len(records),
            },
        )
        return Page(records=records, pagination=meta)

    async def get_range(self, request: PageRequest) -> RangePage:
        """
        Serve the page after `request.cursor` (keyset paging).

        The total is the approximate dataset size, which keeps this path cheap.
        """
        query = self.build_query(request)
        window = await self.execute(StrategyKind.KEYSET, query)
        records = [project_record(row) for row in window["rows"]]
        total = await self.estimator.estimate_total(Predicate())
        return RangePage(
            records=records,
            totalRecords=total.count,
            lastId=records[-1]["id"] if records else None,
        )


async def probe_strategies(
    paginator: Paginator,
    request: PageRequest,
    kinds: Optional[Iterable[StrategyKind]] = None,
) -> List[Dict[str, Any]]:
    """
    Time each strategy on the same page and return one result dict per strategy.

    Every strategy sees the same query, so row counts should agree; a mismatch
    points at an ordering or anchoring difference.
    """
    query = paginator.build_query(request)
    results: List[Dict[str, Any]] = []
    for kind in kinds or _PROBE_KINDS:
        log.info(f"[PROBE] {kind.value}", extra={"offset": query.offset, "limit": query.limit})
        with profile_block(kind.value) as stats:
            window = await paginator.execute(kind, query)
            stats.rows = len(window["rows"])
        rows = window["rows"]
        first, last = (rows[0], rows[-1]) if rows else (None, None)
        results.append(
            {
                "strategy": kind.value,
                "offset": query.offset,
                "rows": len(rows),
                "first_id": _row_id(first),
                "last_id": _row_id(last),
                "duration_seconds": round(stats.duration_seconds, 4),
                "rows_per_sec": stats.rows_per_second,
                "peak_rss_bytes": stats.peak_rss_bytes,
                "cpu_percent": stats.cpu_percent,
            }
        )
    return results


def _row_id(row: Optional[Dict[str, Any]]) -> Optional[int]:
    if row is None:
        return None
    return row.get("id", row.get(fields.TRANSACTION_ID))


__all__ = [
    "Paginator",
    "available_strategies",
    "build_predicate",
    "choose_strategy",
    "probe_strategies",
]
