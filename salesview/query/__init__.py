"""
Query package for SalesView.

Predicate building, the store protocol the engine consumes, and count
resolution. Nothing here talks to a database driver.
"""

from salesview.query.counting import CountEstimator, CountResult
from salesview.query.predicates import (
    UNIVERSAL,
    Condition,
    Op,
    Predicate,
    build_filter_predicate,
    build_search_predicate,
    combine_predicates,
)
from salesview.query.store import SalesStore, SortSpec

__all__ = [
    "CountEstimator",
    "CountResult",
    "UNIVERSAL",
    "Condition",
    "Op",
    "Predicate",
    "build_filter_predicate",
    "build_search_predicate",
    "combine_predicates",
    "SalesStore",
    "SortSpec",
]
