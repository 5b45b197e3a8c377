"""
Domain package for SalesView.

Exports the value objects and response shapes shared by the query engine, the
service layer and the HTTP layer. Keep this package focused on data
definitions and boundary coercion.
"""

from salesview.domain.models import (
    AgeRange,
    FilterOptions,
    FilterSpec,
    Page,
    PageRequest,
    PaginationMeta,
    ProjectedRecord,
    RangePage,
    SortDirection,
)

__all__ = [
    "AgeRange",
    "FilterOptions",
    "FilterSpec",
    "Page",
    "PageRequest",
    "PaginationMeta",
    "ProjectedRecord",
    "RangePage",
    "SortDirection",
]
