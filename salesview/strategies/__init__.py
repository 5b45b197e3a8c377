"""
Strategies package for SalesView.

This module re-exports the abstract interfaces and the concrete page strategies
so downstream code can import from `salesview.strategies` directly.
"""

from salesview.strategies.abstract import (
    AbstractPageStrategy,
    PageQuery,
    PageStrategy,
    PageWindow,
    StrategyKind,
)
from salesview.strategies.aggregated_window import AggregatedWindowStrategy
from salesview.strategies.anchor_range import AnchorRangeStrategy
from salesview.strategies.direct_offset import DirectOffsetStrategy
from salesview.strategies.keyset import KeysetStrategy

__all__ = [
    # Abstracts
    "AbstractPageStrategy",
    "PageQuery",
    "PageStrategy",
    "PageWindow",
    "StrategyKind",
    # Concrete strategies
    "AggregatedWindowStrategy",
    "AnchorRangeStrategy",
    "DirectOffsetStrategy",
    "KeysetStrategy",
]
