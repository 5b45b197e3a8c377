"""
Pytest configuration for SalesView.

Provides fixtures for:
- An in-memory `SalesStore` that evaluates predicate trees (unit tests)
- Settings overrides with small, test-friendly thresholds
- Database connection management and seeding (integration tests)
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List

import psycopg
import pytest

from salesview.config import Settings
from salesview.domain import fields
from tests.fakes import NAMES, FakeSalesStore, make_rows


@pytest.fixture
def sample_rows() -> List[Dict[str, Any]]:
    return make_rows(250)


@pytest.fixture
def fake_store(sample_rows: List[Dict[str, Any]]) -> FakeSalesStore:
    return FakeSalesStore(sample_rows)


@pytest.fixture(scope="session")
def large_rows() -> List[Dict[str, Any]]:
    """700,000 minimal rows (identifier plus a couple of columns)."""
    return [
        {fields.TRANSACTION_ID: i, fields.CUSTOMER_NAME: NAMES[i % len(NAMES)], fields.AGE: 18 + i % 50}
        for i in range(1, 700_001)
    ]


@pytest.fixture
def small_settings() -> Settings:
    """Settings with thresholds small enough to reach every strategy on a few hundred rows."""
    return Settings(
        anchor_threshold=50,
        window_threshold=20,
        default_page_size=10,
        filter_cache_ttl_seconds=300,
    )


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "retail_sales"),
        db_table=os.getenv("DB_TABLE", "sales_data"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the sales table exists, creating it from db/init.sql if necessary.
    """
    init_sql_path = Path(__file__).parent.parent / "db" / "init.sql"
    with db_connection.cursor() as cur:
        cur.execute(init_sql_path.read_text(encoding="utf-8"))
    db_connection.commit()
    return True


@pytest.fixture(scope="session")
def seeded_sales(
    db_connection: psycopg.Connection,
    db_schema_initialized: bool,
    test_dsn: str,
    test_settings: Settings,
) -> int:
    """
    Seed 500 rows (ids 1..500) into an emptied sales table.

    Returns the number of rows in the table.
    """
    from scripts.generate_data import _copy_into_db, _generate_rows_csv

    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "sales.csv"
        _generate_rows_csv(csv_path, rows=500, batch_size=100, seed=42)
        return _copy_into_db(test_dsn, csv_path, table=test_settings.db_table, truncate=True)
