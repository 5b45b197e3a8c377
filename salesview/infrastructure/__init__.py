"""PostgreSQL infrastructure for SalesView: connection pool and store."""

from salesview.infrastructure.db_factory import PoolManager, build_dsn
from salesview.infrastructure.store import PostgresSalesStore

__all__ = ["PoolManager", "PostgresSalesStore", "build_dsn"]
