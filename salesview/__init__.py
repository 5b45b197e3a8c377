"""
SalesView - paginated, filtered and searchable retail sales listing.

This package serves pages of a large, flat sales dataset stored in PostgreSQL:

- Filter and free-text search predicates
- Count estimation under a latency budget
- Depth-adaptive pagination (direct offset, anchor range, aggregated window, keyset)
- A time-bounded cache of filter options
- A FastAPI HTTP layer and a typer CLI
"""

from __future__ import annotations

__version__ = "1.0.0"
__license__ = "MIT"

# Public API exports
from salesview.config import Settings, get_settings
from salesview.domain.models import FilterOptions, FilterSpec, PageRequest, PaginationMeta
from salesview.paginator import Paginator, available_strategies, choose_strategy
from salesview.service import SalesService
from salesview.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "FilterOptions",
    "FilterSpec",
    "PageRequest",
    "PaginationMeta",
    # Pagination
    "Paginator",
    "SalesService",
    "available_strategies",
    "choose_strategy",
    # Logging
    "configure_logging",
    "get_logger",
]
