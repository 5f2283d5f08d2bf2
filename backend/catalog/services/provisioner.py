"""
Store Provisioner Module

Builds and memoizes the two store handles the catalog uses:
- the write handle, always the direct primary store;
- the read handle, the acceleration cache when configured and reachable,
  otherwise another direct store.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from catalog.common.errors import AccelerationUnavailableError, ConfigurationError, StoreError
from catalog.config import Settings
from catalog.db.models import product_table
from catalog.db.redis import create_acceleration_client
from catalog.db.session import create_store_engine, init_schema
from catalog.repositories.product_store import ProductStore
from catalog.repositories.redis.product_store import RedisCachedProductStore
from catalog.repositories.sqlalchemy.product_store import SQLAlchemyProductStore

logger = logging.getLogger(__name__)

StoreFactory = Callable[[Settings], Awaitable[ProductStore]]


async def build_direct_store(settings: Settings) -> ProductStore:
    """
    Build a direct store on the primary database

    Raises:
        ConfigurationError: TABLE_NAME is not set
    """
    if not settings.TABLE_NAME:
        raise ConfigurationError(message="TABLE_NAME environment variable not configured")

    table = product_table(settings.TABLE_NAME)
    try:
        engine = create_store_engine(settings)
        await init_schema(engine, table)
    except SQLAlchemyError as e:
        raise StoreError(
            message="Failed to connect to the primary store",
            details={"reason": str(e)},
        ) from e
    return SQLAlchemyProductStore(
        engine,
        table,
        max_retries=settings.STORE_MAX_RETRIES,
        retry_delay_ms=settings.STORE_RETRY_DELAY_MS,
        request_timeout=settings.STORE_REQUEST_TIMEOUT_SECONDS,
        batch_chunk_size=settings.BATCH_DELETE_CHUNK_SIZE,
    )


async def build_accelerated_store(settings: Settings) -> ProductStore:
    """
    Build the acceleration cache store, reading through to its own direct store

    Raises:
        AccelerationUnavailableError: Cache client could not be built or reached
    """
    client = await create_acceleration_client(settings)
    try:
        origin = await build_direct_store(settings)
    except Exception:
        await client.aclose()
        raise
    return RedisCachedProductStore(
        client,
        origin,
        ttl_seconds=settings.ACCELERATION_CACHE_TTL_SECONDS,
        namespace=f"catalog:{settings.REGION}:{settings.TABLE_NAME}",
    )


class StoreProvisioner:
    """
    Store Provisioner

    Owns the process-wide store handles. Created once per application and
    handed to the services; handles are built on first use and kept until close().
    """

    def __init__(
        self,
        settings: Settings,
        direct_factory: Optional[StoreFactory] = None,
        accelerated_factory: Optional[StoreFactory] = None,
    ):
        """
        Initialize Provisioner

        Args:
            settings: Application configuration
            direct_factory: Builds a direct store (defaults to the SQL store)
            accelerated_factory: Builds the accelerated store (defaults to the Redis store)
        """
        self.settings = settings
        self._direct_factory = direct_factory or build_direct_store
        self._accelerated_factory = accelerated_factory or build_accelerated_store
        self._write_handle: Optional[ProductStore] = None
        self._read_handle: Optional[ProductStore] = None
        self._write_lock = asyncio.Lock()
        self._read_lock = asyncio.Lock()

    def is_acceleration_configured(self) -> bool:
        """
        Whether an acceleration endpoint is configured

        Reflects configuration only, not whether the cache was actually reachable.
        """
        endpoint = self.settings.ACCELERATION_ENDPOINT
        return bool(endpoint and endpoint.strip())

    async def get_write_handle(self) -> ProductStore:
        """
        Get the direct store used for every write

        Returns:
            ProductStore: Memoized direct store
        """
        if self._write_handle is None:
            async with self._write_lock:
                if self._write_handle is None:
                    self._write_handle = await self._direct_factory(self.settings)
                    logger.info("Direct store handle created")
        return self._write_handle

    async def get_read_handle(self) -> ProductStore:
        """
        Get the store used for reads

        Falls back to a direct store when acceleration is not configured or
        cannot be built; that failure is logged and never raised.

        Returns:
            ProductStore: Memoized accelerated or direct store
        """
        if self._read_handle is None:
            async with self._read_lock:
                if self._read_handle is None:
                    self._read_handle = await self._resolve_read_handle()
        return self._read_handle

    async def _resolve_read_handle(self) -> ProductStore:
        if not self.is_acceleration_configured():
            logger.info("ACCELERATION_ENDPOINT not configured, reads go to the primary store")
            return await self._direct_factory(self.settings)

        try:
            store = await self._accelerated_factory(self.settings)
        except AccelerationUnavailableError as e:
            logger.warning(
                f"Acceleration cache unavailable, falling back to the primary store: {str(e)}"
            )
            return await self._direct_factory(self.settings)
        except Exception as e:
            # Any construction failure degrades to the primary store
            logger.warning(
                f"Acceleration cache construction failed, falling back to the primary store: "
                f"{type(e).__name__}: {str(e)}",
                exc_info=True,
            )
            return await self._direct_factory(self.settings)

        logger.info("Accelerated store handle created")
        return store

    async def invalidate(self, product_id: str) -> None:
        """
        Drop cached reads affected by a write to `product_id`

        Called after every successful write on the direct store. The write
        itself never goes through the read handle; only cached pages are
        dropped. A no-op when reads are served by a direct store.
        """
        if not self.is_acceleration_configured():
            return
        store = await self.get_read_handle()
        await store.invalidate([product_id])

    async def close(self) -> None:
        """Close every handle built so far"""
        handles = [h for h in (self._read_handle, self._write_handle) if h is not None]
        self._read_handle = None
        self._write_handle = None
        for handle in handles:
            await handle.close()
        if handles:
            logger.info("Store handles closed")
