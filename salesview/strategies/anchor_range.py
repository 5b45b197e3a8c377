"""
Anchor range strategy: seek past an anchor row instead of skipping.

Two round-trips. The first reads only the sort key of the last row before the
requested page (a narrow, index-only walk). The second asks for rows strictly
beyond that anchor in sort direction, with no skip at all.

Seeks on (date, identifier) when the listing is sorted by date and on the
identifier otherwise; any other requested sort column is ignored and the
direction is kept.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from salesview.domain import fields
from salesview.domain.models import SortDirection
from salesview.query.predicates import Condition, Op, Predicate
from salesview.query.store import SalesStore, SortSpec
from salesview.strategies.abstract import AbstractPageStrategy, PageQuery, PageWindow
from salesview.utils.logging import get_logger

log = get_logger(__name__)


def beyond_anchor(
    predicate: Predicate,
    anchor: int,
    direction: SortDirection,
    anchor_date: Optional[Any] = None,
) -> Predicate:
    """
    Narrow `predicate` to rows strictly after the anchor in `direction`.

    With `anchor_date` the order is (date, identifier), so the seek becomes
    `date > d OR (date = d AND id > anchor)` (mirrored for descending).
    """
    op = Op.GT if direction is SortDirection.ASC else Op.LT
    after_id = Condition(fields.TRANSACTION_ID, op, anchor)
    if anchor_date is None:
        return predicate.narrow(after_id)
    return predicate.narrow(
        Predicate(
            "or",
            (
                Condition(fields.DATE, op, anchor_date),
                Predicate("and", (Condition(fields.DATE, Op.EQ, anchor_date), after_id)),
            ),
        )
    )


def _seek_columns(query: PageQuery) -> List[str]:
    if query.sort_field == fields.DATE:
        return [fields.DATE, fields.TRANSACTION_ID]
    return [fields.TRANSACTION_ID]


def _seek_sort(query: PageQuery) -> SortSpec:
    return [(column, query.direction) for column in _seek_columns(query)]


class AnchorRangeStrategy(AbstractPageStrategy):
    """
    Locate an anchor row, then range-query past it.
    """

    name: str = "anchor_range"
    description: str = "Sort-key anchor lookup + strict range query (no skip)."

    def __init__(
        self,
        store: SalesStore,
        timeout_ms: int = 60_000,
        lookup_timeout_ms: int = 30_000,
    ) -> None:
        self.store = store
        self.timeout_ms = timeout_ms
        self.lookup_timeout_ms = lookup_timeout_ms

    async def _anchor(self, query: PageQuery) -> Optional[Dict[str, Any]]:
        rows = await self.store.find(
            query.predicate,
            sort=_seek_sort(query),
            skip=query.offset - 1,
            limit=1,
            fields=_seek_columns(query),
            timeout_ms=self.lookup_timeout_ms,
        )
        return rows[0] if rows else None

    async def fetch(self, query: PageQuery) -> PageWindow:
        predicate = query.predicate
        skip = 0
        if query.offset > 0:
            anchor = await self._anchor(query)
            if anchor is None:
                log.info("No anchor at offset, page is past the end", extra={"offset": query.offset})
                return self._window([])
            by_date = query.sort_field == fields.DATE
            if by_date and anchor.get(fields.DATE) is None:
                # No seek key on an undated row; fall back to skipping.
                log.warning("Anchor row has no date, skipping instead", extra={"offset": query.offset})
                skip = query.offset
            else:
                predicate = beyond_anchor(
                    predicate,
                    anchor[fields.TRANSACTION_ID],
                    query.direction,
                    anchor.get(fields.DATE) if by_date else None,
                )
                log.debug("Anchor located", extra={"offset": query.offset, "anchor": anchor})

        rows = await self.store.find(
            predicate,
            sort=_seek_sort(query),
            skip=skip,
            limit=query.limit,
            timeout_ms=self.timeout_ms,
        )
        return self._window(rows)


__all__ = ["AnchorRangeStrategy", "beyond_anchor"]
