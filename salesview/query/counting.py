"""
Total-count resolution under a latency budget.

The unfiltered listing is the common path, so it always uses the store's
metadata count. Filtered listings try an exact count within a time budget and
degrade to the approximate total; the result says which one it is.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from salesview.exceptions import StoreQueryError
from salesview.query.predicates import Predicate
from salesview.query.store import SalesStore
from salesview.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class CountResult:
    count: int
    exact: bool


class CountEstimator:
    """
    Resolve the number of records a predicate selects.

    Remembers the last approximate total it read so a failing metadata read can
    still produce a plausible number instead of a fixed guess.
    """

    def __init__(self, store: SalesStore, count_timeout_ms: int = 15_000) -> None:
        self.store = store
        self.count_timeout_ms = count_timeout_ms
        self._last_approximate: Optional[int] = None

    @property
    def last_approximate(self) -> Optional[int]:
        return self._last_approximate

    async def _approximate(self) -> int:
        try:
            total = await self.store.estimated_count()
        except StoreQueryError:
            if self._last_approximate is None:
                raise
            log.warning(
                "Approximate count failed, reusing last known total",
                extra={"total": self._last_approximate},
            )
            return self._last_approximate
        self._last_approximate = total
        return total

    async def estimate_total(self, predicate: Predicate) -> CountResult:
        """
        Count records for `predicate`.

        Returns
        -------
        CountResult
            `exact=False` when the count came from store metadata; page math
            built on it is advisory.
        """
        if predicate.is_universal:
            return CountResult(await self._approximate(), exact=False)

        try:
            total = await self.store.count(predicate, timeout_ms=self.count_timeout_ms)
        except StoreQueryError as exc:
            log.warning(
                "Exact count failed, using estimated count",
                extra={"error_type": type(exc).__name__, "timeout_ms": self.count_timeout_ms},
            )
            return CountResult(await self._approximate(), exact=False)
        return CountResult(total, exact=True)


__all__ = ["CountResult", "CountEstimator"]
