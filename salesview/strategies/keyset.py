"""
Keyset (cursor) strategy: continue after the last identifier the caller saw.

Callers pass back `lastId` from the previous response; the first page has no
cursor. Ordering is by identifier in the requested direction.
"""

from __future__ import annotations

from salesview.domain import fields
from salesview.query.store import SalesStore
from salesview.strategies.abstract import AbstractPageStrategy, PageQuery, PageWindow
from salesview.strategies.anchor_range import beyond_anchor


class KeysetStrategy(AbstractPageStrategy):
    name: str = "keyset"
    description: str = "Identifier cursor + strict range query (client-held anchor)."

    def __init__(self, store: SalesStore, timeout_ms: int = 30_000) -> None:
        self.store = store
        self.timeout_ms = timeout_ms

    async def fetch(self, query: PageQuery) -> PageWindow:
        predicate = query.predicate
        if query.cursor is not None:
            predicate = beyond_anchor(predicate, query.cursor, query.direction)
        rows = await self.store.find(
            predicate,
            sort=[(fields.TRANSACTION_ID, query.direction)],
            limit=query.limit,
            timeout_ms=self.timeout_ms,
        )
        return self._window(rows)


__all__ = ["KeysetStrategy"]
