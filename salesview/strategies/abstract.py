"""
Abstract strategy interfaces and result contracts for page retrieval.

Concrete strategies (direct offset, anchor range, aggregated window, keyset)
implement the PageStrategy protocol: given a `PageQuery` they return a
`PageWindow` of rows. Which strategy runs is decided by
`salesview.paginator.choose_strategy`, never by the strategies themselves.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol, TypedDict, runtime_checkable

from salesview.domain.models import SortDirection
from salesview.query.predicates import Predicate
from salesview.query.store import Row


class StrategyKind(str, Enum):
    DIRECT_OFFSET = "direct_offset"
    ANCHOR_RANGE = "anchor_range"
    AGGREGATED_WINDOW = "aggregated_window"
    KEYSET = "keyset"


@dataclass(frozen=True)
class PageQuery:
    """
    Everything a strategy needs to fetch one window of rows.

    `sort_field` is the resolved column; strategies that only work on identifier
    ordering ignore it and keep `direction`.
    """

    predicate: Predicate
    sort_field: str
    direction: SortDirection
    offset: int
    limit: int
    cursor: Optional[int] = None


class PageWindow(TypedDict):
    """
    Rows returned by a strategy.

    `projected` is True when the store already mapped rows to response fields.
    """

    rows: List[Row]
    projected: bool
    strategy: str


@runtime_checkable
class PageStrategy(Protocol):
    """
    Common interface all page strategies implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    description : str
        A human-friendly summary of the approach.
    """

    name: str
    description: str

    async def fetch(self, query: PageQuery) -> PageWindow:
        """
        Fetch one window of rows for `query`.

        Parameters
        ----------
        query : PageQuery
            Predicate, ordering, offset and page size.

        Returns
        -------
        PageWindow
            Raw or already-projected rows.
        """
        ...


class AbstractPageStrategy(abc.ABC):
    """
    ABC helper for class-based implementations.

    Subclasses set `name` and `description` and implement `fetch`.
    """

    name: str
    description: str

    def _window(self, rows: List[Row], projected: bool = False) -> PageWindow:
        return PageWindow(rows=rows, projected=projected, strategy=self.name)

    @abc.abstractmethod
    async def fetch(self, query: PageQuery) -> PageWindow:  # pragma: no cover - interface only
        """Fetch rows for the query."""
        raise NotImplementedError


__all__ = [
    "StrategyKind",
    "PageQuery",
    "PageWindow",
    "PageStrategy",
    "AbstractPageStrategy",
]
