"""
Filter metadata cache for SalesView.

Distinct facet values, the age range and a tag vocabulary are expensive to
compute over the full table, so they are built once and served from memory for
a time-to-live. Stale reads are fine; an error never reaches the caller.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Iterable, List, Optional, Tuple

from salesview.domain import fields
from salesview.domain.models import AgeRange, FilterOptions
from salesview.exceptions import SalesStoreError
from salesview.query.store import SalesStore
from salesview.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_MIN_AGE = 0
DEFAULT_MAX_AGE = 100


def _clean_values(values: Iterable[Any]) -> Tuple[str, ...]:
    """Drop blank entries, de-duplicate and sort."""
    cleaned = {str(value).strip() for value in values if value is not None and str(value).strip()}
    return tuple(sorted(cleaned))


def collect_tags(samples: Iterable[Any], limit: int = 100) -> Tuple[str, ...]:
    """
    Split comma-joined tag strings into a sorted vocabulary of at most `limit` entries.
    """
    tags = set()
    for sample in samples:
        if not sample:
            continue
        for tag in str(sample).split(","):
            tag = tag.strip()
            if tag:
                tags.add(tag)
    return tuple(sorted(tags)[:limit])


class FilterOptionsCache:
    """
    Time-bounded cache of the `FilterOptions` snapshot.

    Parameters
    ----------
    store : SalesStore
        Source of distinct values, ranges and tag samples.
    ttl_seconds : float
        Snapshot lifetime.
    scan_timeout_ms : int
        Time budget of each store call made during a refresh.
    sample_size : int
        Number of rows sampled for the tag vocabulary.
    tag_limit : int
        Maximum number of tags kept.
    clock : callable
        Monotonic clock; injectable for tests.
    """

    def __init__(
        self,
        store: SalesStore,
        ttl_seconds: float = 300.0,
        scan_timeout_ms: int = 30_000,
        sample_size: int = 10_000,
        tag_limit: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.scan_timeout_ms = scan_timeout_ms
        self.sample_size = sample_size
        self.tag_limit = tag_limit
        self._clock = clock
        # (snapshot, built_at) replaced as a whole so readers never see a torn pair.
        self._entry: Optional[Tuple[FilterOptions, float]] = None

    @property
    def snapshot(self) -> Optional[FilterOptions]:
        return self._entry[0] if self._entry else None

    async def get(self) -> FilterOptions:
        """Return the cached snapshot, rebuilding it when older than the TTL."""
        entry = self._entry
        if entry is not None and self._clock() - entry[1] < self.ttl_seconds:
            return entry[0]
        return await self.force_refresh()

    async def force_refresh(self) -> FilterOptions:
        """Rebuild the snapshot now. On failure return an empty snapshot without caching it."""
        start = time.perf_counter()
        try:
            options = await self._build()
        except Exception as exc:
            log.error(
                "Filter options refresh failed, serving empty options",
                extra={"error_type": type(exc).__name__, "error": str(exc)},
                exc_info=not isinstance(exc, SalesStoreError),
            )
            return FilterOptions.empty()

        self._entry = (options, self._clock())
        log.info(
            "Filter options refreshed",
            extra={
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                "regions": len(options.customer_regions),
                "categories": len(options.product_categories),
                "tags": len(options.tags),
            },
        )
        return options

    async def _distinct(self, field: str) -> Tuple[str, ...]:
        return _clean_values(await self.store.distinct(field, timeout_ms=self.scan_timeout_ms))

    async def _build(self) -> FilterOptions:
        # Every scan finishes before a failure is raised.
        scans = await asyncio.gather(
            self._distinct(fields.CUSTOMER_REGION),
            self._distinct(fields.GENDER),
            self._distinct(fields.PRODUCT_CATEGORY),
            self._distinct(fields.PAYMENT_METHOD),
            return_exceptions=True,
        )
        for result in scans:
            if isinstance(result, BaseException):
                raise result
        regions, genders, categories, payment_methods = scans
        min_age, max_age = await self.store.min_max(fields.AGE, timeout_ms=self.scan_timeout_ms)
        samples: List[Any] = await self.store.sample(
            fields.TAGS, size=self.sample_size, timeout_ms=self.scan_timeout_ms
        )
        return FilterOptions(
            customer_regions=regions,
            genders=genders,
            product_categories=categories,
            payment_methods=payment_methods,
            tags=collect_tags(samples, self.tag_limit),
            age_range=AgeRange(
                min=DEFAULT_MIN_AGE if min_age is None else int(min_age),
                max=DEFAULT_MAX_AGE if max_age is None else int(max_age),
            ),
        )


__all__ = ["FilterOptionsCache", "collect_tags"]
