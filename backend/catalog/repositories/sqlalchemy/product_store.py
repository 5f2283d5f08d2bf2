"""
Product Store SQLAlchemy Implementation

The direct handle to the primary store. All writes go through this class.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

from sqlalchemy import Table, and_, delete, insert, or_, select, update
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from catalog.common.errors import StoreError
from catalog.domain.product import Product, ProductKey, PutOutcome, QueryPage
from catalog.repositories.product_store import ProductStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SQLAlchemyProductStore(ProductStore):
    """
    Product Store SQLAlchemy Implementation

    Each operation runs in its own transaction. Transient failures
    (OperationalError, request timeout) are retried up to `max_retries` times;
    every other failure is raised as StoreError straight away.
    """

    kind = "direct"

    def __init__(
        self,
        engine: AsyncEngine,
        table: Table,
        *,
        max_retries: int = 3,
        retry_delay_ms: int = 100,
        request_timeout: float = 5.0,
        batch_chunk_size: int = 25,
    ):
        """
        Initialize Store

        Args:
            engine: Async database engine
            table: Product table
            max_retries: Retries on transient failures
            retry_delay_ms: Delay between retries (ms)
            request_timeout: Per-attempt timeout (seconds)
            batch_chunk_size: Max keys per batch delete transaction
        """
        self.engine = engine
        self.table = table
        self.max_retries = max_retries
        self.retry_delay_ms = retry_delay_ms
        self.request_timeout = request_timeout
        self.batch_chunk_size = batch_chunk_size

    def _key_clause(self, key: ProductKey):
        return and_(
            self.table.c.product_id == key.product_id,
            self.table.c.version == key.version,
        )

    def _to_domain(self, row: Any) -> Product:
        """Convert a result row to domain model"""
        return Product.model_validate(dict(row._mapping))

    async def _execute(
        self,
        operation: str,
        fn: Callable[[AsyncConnection], Awaitable[T]],
        passthrough: tuple[type[Exception], ...] = (),
    ) -> T:
        """
        Run `fn` in a transaction with timeout and retry

        Args:
            operation: Operation name for logs and errors
            fn: Coroutine function receiving the connection
            passthrough: Exceptions re-raised as-is after rollback

        Raises:
            StoreError: Store failed after retries, or failed non-transiently
        """
        attempt = 0
        while True:
            try:
                async with self.engine.begin() as conn:
                    return await asyncio.wait_for(fn(conn), timeout=self.request_timeout)
            except passthrough:
                raise
            except (OperationalError, asyncio.TimeoutError) as e:
                if attempt >= self.max_retries:
                    logger.error(
                        f"Store {operation} failed after {attempt + 1} attempts: {str(e)}"
                    )
                    raise StoreError(
                        message=f"Failed to {operation}",
                        details={"reason": str(e) or type(e).__name__},
                    ) from e
                attempt += 1
                logger.warning(
                    f"Store {operation} failed, retrying ({attempt}/{self.max_retries}): {str(e)}"
                )
                await asyncio.sleep(self.retry_delay_ms / 1000)
            except SQLAlchemyError as e:
                raise StoreError(
                    message=f"Failed to {operation}",
                    details={"reason": str(e)},
                ) from e

    async def put_item(self, item: Product, *, only_if_absent: bool = False) -> PutOutcome:
        """Write a full row, optionally only if the key is free"""
        values = item.model_dump()

        async def _put(conn: AsyncConnection) -> PutOutcome:
            if not only_if_absent:
                await conn.execute(delete(self.table).where(self._key_clause(item.key)))
            await conn.execute(insert(self.table).values(**values))
            return PutOutcome.APPLIED

        try:
            return await self._execute("put product", _put, passthrough=(IntegrityError,))
        except IntegrityError:
            # Primary key taken: the existence condition failed
            return PutOutcome.CONDITION_FAILED

    async def update_item(self, key: ProductKey, attributes: dict[str, Any]) -> Product:
        """Write the given attributes, creating the row if missing"""
        values = {k: v for k, v in attributes.items() if k not in ("product_id", "version")}

        async def _update(conn: AsyncConnection) -> Product:
            result = None
            if values:
                result = await conn.execute(
                    update(self.table).where(self._key_clause(key)).values(**values)
                )
            if result is None or result.rowcount == 0:
                existing = await conn.execute(
                    select(self.table.c.product_id).where(self._key_clause(key))
                )
                if existing.first() is None:
                    await conn.execute(
                        insert(self.table).values(
                            product_id=key.product_id, version=key.version, **values
                        )
                    )
            row = (
                await conn.execute(select(self.table).where(self._key_clause(key)))
            ).one()
            return self._to_domain(row)

        return await self._execute("update product", _update)

    async def delete_item(self, key: ProductKey) -> None:
        """Delete one row"""

        async def _delete(conn: AsyncConnection) -> None:
            await conn.execute(delete(self.table).where(self._key_clause(key)))

        await self._execute("delete product", _delete)

    async def batch_delete(self, keys: Sequence[ProductKey]) -> None:
        """Delete rows in chunks, one transaction per chunk"""
        keys = list(keys)
        for start in range(0, len(keys), self.batch_chunk_size):
            chunk = keys[start:start + self.batch_chunk_size]

            async def _delete_chunk(conn: AsyncConnection, chunk=chunk) -> None:
                await conn.execute(
                    delete(self.table).where(or_(*(self._key_clause(k) for k in chunk)))
                )

            await self._execute("batch delete products", _delete_chunk)

    async def query_versions(
        self,
        product_id: str,
        *,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> QueryPage:
        """Get rows of one product ordered by version"""
        order = self.table.c.version.desc() if descending else self.table.c.version.asc()
        stmt = select(self.table).where(self.table.c.product_id == product_id).order_by(order)
        return await self._query("query product versions", stmt, limit)

    async def query_category(self, category: str, *, limit: int) -> QueryPage:
        """Get rows of a category, newest version first"""
        stmt = (
            select(self.table)
            .where(self.table.c.category == category)
            .order_by(self.table.c.version.desc())
        )
        return await self._query("query category", stmt, limit)

    async def scan(self, *, limit: int) -> QueryPage:
        """Get up to `limit` rows of the table"""
        return await self._query("scan products", select(self.table), limit)

    async def _query(self, operation: str, stmt, limit: Optional[int]) -> QueryPage:
        """Run a select, fetching one extra row to detect has_more"""
        if limit is not None:
            stmt = stmt.limit(limit + 1)

        async def _select(conn: AsyncConnection) -> QueryPage:
            rows = (await conn.execute(stmt)).all()
            has_more = limit is not None and len(rows) > limit
            if has_more:
                rows = rows[:limit]
            return QueryPage(items=[self._to_domain(r) for r in rows], has_more=has_more)

        return await self._execute(operation, _select)

    async def purge_expired(self, now_seconds: int) -> int:
        """Delete rows whose expires_at has passed"""

        async def _purge(conn: AsyncConnection) -> int:
            result = await conn.execute(
                delete(self.table).where(
                    self.table.c.expires_at.isnot(None),
                    self.table.c.expires_at <= now_seconds,
                )
            )
            return result.rowcount

        return await self._execute("purge expired products", _purge)

    async def close(self) -> None:
        """Dispose the engine"""
        await self.engine.dispose()
