"""
Store interface consumed by the query engine.

The engine never talks to a database driver directly: it depends on the
`SalesStore` protocol below. `salesview.infrastructure.store.PostgresSalesStore`
is the production implementation; tests provide an in-memory one.

Every operation takes an explicit time budget and raises
`salesview.exceptions.QueryTimeoutError` when it is exceeded.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, runtime_checkable

from salesview.domain.models import SortDirection
from salesview.query.predicates import Predicate

Row = Dict[str, Any]
SortSpec = Sequence[Tuple[str, SortDirection]]


@runtime_checkable
class SalesStore(Protocol):
    """
    Read-only operations over the flat sales dataset.
    """

    async def find(
        self,
        predicate: Predicate,
        *,
        sort: SortSpec,
        skip: int = 0,
        limit: Optional[int] = None,
        fields: Optional[Sequence[str]] = None,
        timeout_ms: int,
    ) -> List[Row]:
        """
        Return matching rows ordered by `sort`, after skipping `skip` rows.

        Parameters
        ----------
        fields : sequence[str] | None
            Columns to fetch. None fetches every column.
        """
        ...

    async def count(self, predicate: Predicate, *, timeout_ms: int) -> int:
        """Exact number of rows matching `predicate`."""
        ...

    async def estimated_count(self) -> int:
        """Cheap, possibly stale, total row count read from store metadata."""
        ...

    async def window(
        self,
        predicate: Predicate,
        *,
        sort: SortDirection,
        skip: int,
        limit: int,
        projection: Mapping[str, str],
        timeout_ms: int,
    ) -> List[Row]:
        """
        Single-pass pipeline: match, sort by identifier, skip, limit, project.

        `projection` maps output names to columns; returned rows are keyed by the
        output names.
        """
        ...

    async def distinct(self, field: str, *, timeout_ms: int) -> List[Any]:
        """Distinct values of one column."""
        ...

    async def min_max(self, field: str, *, timeout_ms: int) -> Tuple[Any, Any]:
        """Minimum and maximum of one column; (None, None) on an empty dataset."""
        ...

    async def sample(self, field: str, *, size: int, timeout_ms: int) -> List[Any]:
        """Values of `field` from a bounded random sample of rows where it is non-empty."""
        ...


__all__ = ["Row", "SortSpec", "SalesStore"]
