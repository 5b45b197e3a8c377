"""
Database connection factory utilities for SalesView.

Owns the asynchronous PostgreSQL connection pool used by the store. Opening the
pool retries transient connection failures using tenacity; once the service is
running, connection failures surface as `StoreUnavailableError` instead.
"""

from __future__ import annotations

from typing import Optional

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool, PoolTimeout
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from salesview.config import Settings, get_settings
from salesview.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


class PoolManager:
    """
    Lifecycle of the async connection pool.

    Example
    -------
        manager = PoolManager()
        pool = await manager.open()
        async with pool.connection() as conn:
            await conn.execute("SELECT 1")
        await manager.close()
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self._pool: Optional[AsyncConnectionPool] = None

    @property
    def pool(self) -> AsyncConnectionPool:
        if self._pool is None:
            raise RuntimeError("Connection pool is not open; call open() first")
        return self._pool

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(
            (psycopg.OperationalError, psycopg.InterfaceError, PoolTimeout)
        ),
        reraise=True,
    )
    async def _open_pool(self) -> AsyncConnectionPool:
        pool = AsyncConnectionPool(
            conninfo=build_dsn(self.settings),
            min_size=self.settings.db_pool_min_size,
            max_size=self.settings.db_pool_max_size,
            timeout=self.settings.db_connect_timeout_s,
            kwargs={"row_factory": dict_row},
            open=False,
        )
        try:
            await pool.open(wait=True, timeout=self.settings.db_connect_timeout_s)
        except Exception:
            await pool.close()
            raise
        return pool

    async def open(self) -> AsyncConnectionPool:
        """
        Open the pool, retrying up to 3 times with exponential backoff.

        Returns
        -------
        AsyncConnectionPool
            The managed pool; rows come back as dicts keyed by column name.

        Raises
        ------
        psycopg_pool.PoolTimeout
            If the minimum number of connections cannot be established after all attempts.
        """
        if self._pool is None:
            log.info(
                "Opening connection pool",
                extra={
                    "db_host": self.settings.db_host,
                    "db_name": self.settings.db_name,
                    "min_size": self.settings.db_pool_min_size,
                    "max_size": self.settings.db_pool_max_size,
                },
            )
            self._pool = await self._open_pool()
        return self._pool

    async def close(self) -> None:
        if self._pool is not None:
            pool, self._pool = self._pool, None
            await pool.close()
            log.info("Connection pool closed")

    async def __aenter__(self) -> AsyncConnectionPool:
        return await self.open()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


__all__ = ["PoolManager", "build_dsn"]
