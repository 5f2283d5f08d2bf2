"""
Product Store Redis Read-Through Implementation

The accelerated handle: serves queries from a Redis cache and reads through to
its origin store on a miss. Cached pages expire via Redis native TTL.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Iterable, Optional, Sequence

from redis.asyncio import Redis
from redis.exceptions import RedisError

from catalog.domain.product import Product, ProductKey, PutOutcome, QueryPage
from catalog.repositories.product_store import ProductStore

logger = logging.getLogger(__name__)


class RedisCachedProductStore(ProductStore):
    """
    Product Store Redis Read-Through Implementation

    Query results are cached per (query, arguments) as JSON pages.
    Cache failures at runtime are logged and the query goes to the origin,
    so callers never see an acceleration error.

    Writes pass through to the origin and then invalidate the cached pages
    they may affect. The catalog never routes writes here; the pass-through
    keeps the interface interchangeable with the direct store. Writes made on
    the direct store call invalidate() afterwards instead.
    """

    kind = "accelerated"

    def __init__(
        self,
        client: Redis,
        origin: ProductStore,
        *,
        ttl_seconds: int = 300,
        namespace: str = "catalog",
    ):
        """
        Initialize Store

        Args:
            client: Async Redis client instance
            origin: Store to read through to on a cache miss
            ttl_seconds: Lifetime of cached pages
            namespace: Prefix of every cache key
        """
        self.client = client
        self.origin = origin
        self.ttl_seconds = ttl_seconds
        self.namespace = namespace

    def _versions_key(self, product_id: str, descending: bool, limit: Optional[int]) -> str:
        order = "desc" if descending else "asc"
        bound = "all" if limit is None else str(limit)
        return f"{self.namespace}:versions:{product_id}:{order}:{bound}"

    def _category_key(self, category: str, limit: int) -> str:
        return f"{self.namespace}:list:category:{category}:{limit}"

    def _scan_key(self, limit: int) -> str:
        return f"{self.namespace}:list:scan:{limit}"

    def _serialize(self, page: QueryPage) -> str:
        """Serialize a page to JSON string"""
        return json.dumps(
            {
                "items": [item.model_dump() for item in page.items],
                "has_more": page.has_more,
            }
        )

    def _deserialize(self, raw: str) -> QueryPage:
        """Deserialize JSON string to a page"""
        data = json.loads(raw)
        return QueryPage(
            items=[Product.model_validate(item) for item in data["items"]],
            has_more=data["has_more"],
        )

    async def _read_through(
        self, cache_key: str, loader: Callable[[], Awaitable[QueryPage]]
    ) -> QueryPage:
        """Serve `cache_key` from the cache, loading and caching it on a miss"""
        try:
            raw = await self.client.get(cache_key)
        except RedisError as e:
            logger.warning(f"Acceleration cache read failed, reading from origin: {str(e)}")
            return await loader()

        if raw is not None:
            try:
                page = self._deserialize(raw)
            except (ValueError, KeyError, TypeError) as e:
                # JSONDecodeError and pydantic ValidationError are ValueErrors
                logger.warning(f"Unreadable cached page {cache_key}, reading from origin: {str(e)}")
            else:
                logger.debug(f"Cache hit: {cache_key}")
                return page

        page = await loader()
        try:
            await self.client.set(cache_key, self._serialize(page), ex=self.ttl_seconds)
        except RedisError as e:
            logger.warning(f"Acceleration cache write failed: {str(e)}")
        return page

    async def _invalidate(self, patterns: Iterable[str]) -> None:
        """Drop cached pages matching any of `patterns`"""
        try:
            for pattern in patterns:
                keys = [key async for key in self.client.scan_iter(match=pattern)]
                if keys:
                    await self.client.delete(*keys)
        except RedisError as e:
            logger.warning(f"Acceleration cache invalidation failed: {str(e)}")

    def _patterns_for(self, product_ids: Iterable[str]) -> list[str]:
        patterns = [f"{self.namespace}:versions:{pid}:*" for pid in set(product_ids)]
        patterns.append(f"{self.namespace}:list:*")
        return patterns

    async def invalidate(self, product_ids: Iterable[str]) -> None:
        """Drop the version pages of the given products and every listing page"""
        await self._invalidate(self._patterns_for(product_ids))

    async def query_versions(
        self,
        product_id: str,
        *,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> QueryPage:
        return await self._read_through(
            self._versions_key(product_id, descending, limit),
            lambda: self.origin.query_versions(product_id, descending=descending, limit=limit),
        )

    async def query_category(self, category: str, *, limit: int) -> QueryPage:
        return await self._read_through(
            self._category_key(category, limit),
            lambda: self.origin.query_category(category, limit=limit),
        )

    async def scan(self, *, limit: int) -> QueryPage:
        return await self._read_through(
            self._scan_key(limit),
            lambda: self.origin.scan(limit=limit),
        )

    async def put_item(self, item: Product, *, only_if_absent: bool = False) -> PutOutcome:
        outcome = await self.origin.put_item(item, only_if_absent=only_if_absent)
        if outcome is PutOutcome.APPLIED:
            await self._invalidate(self._patterns_for([item.product_id]))
        return outcome

    async def update_item(self, key: ProductKey, attributes: dict[str, Any]) -> Product:
        product = await self.origin.update_item(key, attributes)
        await self._invalidate(self._patterns_for([key.product_id]))
        return product

    async def delete_item(self, key: ProductKey) -> None:
        await self.origin.delete_item(key)
        await self._invalidate(self._patterns_for([key.product_id]))

    async def batch_delete(self, keys: Sequence[ProductKey]) -> None:
        await self.origin.batch_delete(keys)
        await self._invalidate(self._patterns_for(k.product_id for k in keys))

    async def purge_expired(self, now_seconds: int) -> int:
        deleted = await self.origin.purge_expired(now_seconds)
        if deleted:
            await self._invalidate([f"{self.namespace}:*"])
        return deleted

    async def close(self) -> None:
        """Close the cache client and the origin store"""
        await self.client.aclose()
        await self.origin.close()
