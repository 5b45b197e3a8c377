"""
Composition root for SalesView.

`SalesService` owns the store, the count estimator, the paginator and the
filter-options cache, and is the only object the HTTP layer and the CLI talk to.
"""

from __future__ import annotations

from typing import Optional

from salesview.config import Settings, get_settings
from salesview.domain.models import FilterOptions, Page, PageRequest, RangePage
from salesview.filter_options import FilterOptionsCache
from salesview.paginator import Paginator
from salesview.query.counting import CountEstimator
from salesview.query.store import SalesStore
from salesview.utils.logging import get_logger

log = get_logger(__name__)


class SalesService:
    def __init__(
        self,
        store: SalesStore,
        settings: Optional[Settings] = None,
        filter_cache: Optional[FilterOptionsCache] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store
        self.estimator = CountEstimator(store, self.settings.count_timeout_ms)
        self.paginator = Paginator(store, self.estimator, self.settings)
        self.filter_cache = filter_cache or FilterOptionsCache(
            store,
            ttl_seconds=self.settings.filter_cache_ttl_seconds,
            scan_timeout_ms=self.settings.scan_timeout_ms,
            sample_size=self.settings.tag_sample_size,
            tag_limit=self.settings.tag_limit,
        )

    async def get_page(self, request: PageRequest) -> Page:
        return await self.paginator.get_page(request)

    async def get_range(self, request: PageRequest) -> RangePage:
        return await self.paginator.get_range(request)

    async def get_filter_options(self) -> FilterOptions:
        return await self.filter_cache.get()

    async def warm_up(self) -> None:
        """Build the filter-options snapshot ahead of the first request."""
        log.info("Warming filter options cache")
        await self.filter_cache.force_refresh()


__all__ = ["SalesService"]
