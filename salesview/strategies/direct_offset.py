"""
Direct offset strategy: match, sort, skip, limit.

The simplest path and the one used for shallow pages. Cost grows linearly with
the offset because the store still walks every skipped row.
"""

from __future__ import annotations

from salesview.domain import fields
from salesview.query.store import SalesStore, SortSpec
from salesview.strategies.abstract import AbstractPageStrategy, PageQuery, PageWindow


def sort_with_tiebreak(query: PageQuery) -> SortSpec:
    """Order by the requested column, then by identifier so equal keys stay stable."""
    if query.sort_field == fields.TRANSACTION_ID:
        return [(fields.TRANSACTION_ID, query.direction)]
    return [(query.sort_field, query.direction), (fields.TRANSACTION_ID, query.direction)]


class DirectOffsetStrategy(AbstractPageStrategy):
    """
    Skip/limit over the requested sort column.
    """

    name: str = "direct_offset"
    description: str = "find + sort + skip + limit on the requested column."

    def __init__(self, store: SalesStore, timeout_ms: int = 60_000) -> None:
        self.store = store
        self.timeout_ms = timeout_ms

    async def fetch(self, query: PageQuery) -> PageWindow:
        rows = await self.store.find(
            query.predicate,
            sort=sort_with_tiebreak(query),
            skip=query.offset,
            limit=query.limit,
            timeout_ms=self.timeout_ms,
        )
        return self._window(rows)


__all__ = ["DirectOffsetStrategy", "sort_with_tiebreak"]
