"""Exception hierarchy for SalesView."""


class SalesViewError(Exception):
    """Base exception for all SalesView errors."""


class SalesStoreError(SalesViewError):
    """Raised when the backing data store fails an operation."""


class StoreUnavailableError(SalesStoreError):
    """Raised when the data store cannot be reached (connection-level failure)."""


class StoreQueryError(SalesStoreError):
    """Raised when a single store query fails while the store itself is reachable."""


class QueryTimeoutError(StoreQueryError):
    """Raised when a store query exceeds its time budget."""


__all__ = [
    "SalesViewError",
    "SalesStoreError",
    "StoreUnavailableError",
    "StoreQueryError",
    "QueryTimeoutError",
]
