"""
Configuration Management Module

Configures application parameters via environment variables or .env file.
Supports SQLite (default) and PostgreSQL as the primary product store.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application Configuration Class

    All configuration items can be overridden by environment variables, with names matching fields (uppercase).
    """

    # Application Config
    APP_NAME: str = "Product Catalog"
    DEBUG: bool = False

    # Primary Store Config
    # Supports "sqlite" or "postgresql"
    DATABASE_TYPE: Literal["sqlite", "postgresql"] = "sqlite"
    # SQLite default database path, PostgreSQL requires full connection string
    DATABASE_URL: str = "sqlite+aiosqlite:///./catalog.db"
    # Product table name. Required: every request fails with a configuration error without it
    TABLE_NAME: Optional[str] = None
    # Region identifier, also used to namespace acceleration cache keys
    REGION: str = "us-east-1"

    # Direct Store Client Config
    # Retries on transient store failures (connection drops, timeouts)
    STORE_MAX_RETRIES: int = 3
    # Delay between retries (ms)
    STORE_RETRY_DELAY_MS: int = 100
    # Connection timeout (seconds)
    STORE_CONNECT_TIMEOUT_SECONDS: float = 3.0
    # Per-request timeout (seconds)
    STORE_REQUEST_TIMEOUT_SECONDS: float = 5.0
    # Max keys deleted per batch request
    BATCH_DELETE_CHUNK_SIZE: int = 25

    # Acceleration Cache Config
    # Redis endpoint of the read acceleration cache, e.g. "redis://cache:6379/0".
    # Empty means acceleration is disabled and reads go to the primary store.
    ACCELERATION_ENDPOINT: Optional[str] = None
    ACCELERATION_CONNECT_TIMEOUT_SECONDS: float = 3.0
    ACCELERATION_REQUEST_TIMEOUT_SECONDS: float = 5.0
    # Connection pool size
    ACCELERATION_MAX_CONNECTIONS: int = 50
    # Cached query results live this long (seconds)
    ACCELERATION_CACHE_TTL_SECONDS: int = 300

    # Product Config
    # Lifetime of products created with "ttl": true (days)
    PRODUCT_TTL_DAYS: int = 30
    # Default page size for product listing
    LIST_DEFAULT_LIMIT: int = 20
    # Expired product purge interval in hours
    EXPIRED_PURGE_INTERVAL_HOURS: int = 1

    # CORS Config
    # Comma-separated list of allowed origins for CORS, "*" allows any origin
    ALLOWED_ORIGINS: str = "*"

    # Rate Limit Config
    # Enable/disable rate limiting (useful for development)
    RATE_LIMIT_ENABLED: bool = True
    # Default rate limit for general endpoints
    RATE_LIMIT_DEFAULT: str = "100/minute"
    # Rate limit for product reads (GET /products*)
    RATE_LIMIT_READ: str = "300/minute"
    # Rate limit for product writes (POST/PUT/DELETE /products*)
    RATE_LIMIT_WRITE: str = "60/minute"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get application configuration (Singleton)

    Uses lru_cache to ensure configuration is loaded only once per process.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()
