"""
Configuration settings for SalesView.

Uses Pydantic Settings to load environment variables for the database connection,
logging, the HTTP layer, and the pagination/caching thresholds the query engine
relies on.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("retail_sales", alias="DB_NAME")
    db_table: str = Field("sales_data", alias="DB_TABLE")
    db_pool_min_size: int = Field(2, alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(20, alias="DB_POOL_MAX_SIZE")
    db_connect_timeout_s: float = Field(30.0, alias="DB_CONNECT_TIMEOUT_S")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")
    api_host: str = Field("0.0.0.0", alias="API_HOST")
    api_port: int = Field(5000, alias="API_PORT")

    # Pagination
    default_page_size: int = Field(10, alias="DEFAULT_PAGE_SIZE")
    anchor_threshold: int = Field(500_000, alias="ANCHOR_THRESHOLD")
    window_threshold: int = Field(100_000, alias="WINDOW_THRESHOLD")

    # Time budgets (milliseconds)
    count_timeout_ms: int = Field(15_000, alias="COUNT_TIMEOUT_MS")
    query_timeout_ms: int = Field(60_000, alias="QUERY_TIMEOUT_MS")
    anchor_lookup_timeout_ms: int = Field(30_000, alias="ANCHOR_LOOKUP_TIMEOUT_MS")
    window_timeout_ms: int = Field(90_000, alias="WINDOW_TIMEOUT_MS")
    scan_timeout_ms: int = Field(30_000, alias="SCAN_TIMEOUT_MS")

    # Filter options cache
    filter_cache_ttl_seconds: float = Field(300.0, alias="FILTER_CACHE_TTL_SECONDS")
    tag_sample_size: int = Field(10_000, alias="TAG_SAMPLE_SIZE")
    tag_limit: int = Field(100, alias="TAG_LIMIT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
