"""
Aggregated window strategy for deep pages on the optimized path.

One store pipeline does match, sort, skip, limit and the projection to response
field names, so the engine can fuse the stages (and spill to disk) under a
longer time budget. Always ordered by identifier.
"""

from __future__ import annotations

from salesview.projection import RESPONSE_FIELDS
from salesview.query.store import SalesStore
from salesview.strategies.abstract import AbstractPageStrategy, PageQuery, PageWindow


class AggregatedWindowStrategy(AbstractPageStrategy):
    name: str = "aggregated_window"
    description: str = "Single match/sort/skip/limit/project pipeline on identifier order."

    def __init__(self, store: SalesStore, timeout_ms: int = 90_000) -> None:
        self.store = store
        self.timeout_ms = timeout_ms

    async def fetch(self, query: PageQuery) -> PageWindow:
        rows = await self.store.window(
            query.predicate,
            sort=query.direction,
            skip=query.offset,
            limit=query.limit,
            projection=RESPONSE_FIELDS,
            timeout_ms=self.timeout_ms,
        )
        return self._window(rows, projected=True)


__all__ = ["AggregatedWindowStrategy"]
