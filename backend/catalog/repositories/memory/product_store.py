"""
Product Store In-Memory Implementation

A process-local store used as a test double. Several store instances can share
one InMemoryTable, so a "direct" and an "accelerated" handle see the same rows
while remaining distinct objects. Every call is recorded in `calls`.
"""

from typing import Any, Optional, Sequence

from catalog.domain.product import Product, ProductKey, PutOutcome, QueryPage
from catalog.repositories.product_store import ProductStore

WRITE_CALLS = frozenset({"put_item", "update_item", "delete_item", "batch_delete", "purge_expired"})


class InMemoryTable:
    """Rows keyed by (product_id, version), in insertion order"""

    def __init__(self) -> None:
        self.rows: dict[ProductKey, Product] = {}


class InMemoryProductStore(ProductStore):
    """Product Store In-Memory Implementation"""

    kind = "memory"

    def __init__(self, table: Optional[InMemoryTable] = None, *, kind: Optional[str] = None):
        self.table = table if table is not None else InMemoryTable()
        if kind is not None:
            self.kind = kind
        self.calls: list[str] = []
        self.closed = False

    @property
    def write_calls(self) -> list[str]:
        """Recorded calls that modify rows"""
        return [c for c in self.calls if c in WRITE_CALLS]

    def _page(self, rows: list[Product], limit: Optional[int]) -> QueryPage:
        has_more = limit is not None and len(rows) > limit
        if has_more:
            rows = rows[:limit]
        return QueryPage(items=[r.model_copy() for r in rows], has_more=has_more)

    async def put_item(self, item: Product, *, only_if_absent: bool = False) -> PutOutcome:
        self.calls.append("put_item")
        if only_if_absent and item.key in self.table.rows:
            return PutOutcome.CONDITION_FAILED
        self.table.rows[item.key] = item.model_copy()
        return PutOutcome.APPLIED

    async def update_item(self, key: ProductKey, attributes: dict[str, Any]) -> Product:
        self.calls.append("update_item")
        values = {k: v for k, v in attributes.items() if k not in ("product_id", "version")}
        existing = self.table.rows.get(key)
        if existing is None:
            row = Product(product_id=key.product_id, version=key.version, **values)
        else:
            row = existing.model_copy(update=values)
        self.table.rows[key] = row
        return row.model_copy()

    async def delete_item(self, key: ProductKey) -> None:
        self.calls.append("delete_item")
        self.table.rows.pop(key, None)

    async def batch_delete(self, keys: Sequence[ProductKey]) -> None:
        self.calls.append("batch_delete")
        for key in keys:
            self.table.rows.pop(key, None)

    async def query_versions(
        self,
        product_id: str,
        *,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> QueryPage:
        self.calls.append("query_versions")
        rows = sorted(
            (r for r in self.table.rows.values() if r.product_id == product_id),
            key=lambda r: r.version,
            reverse=descending,
        )
        return self._page(rows, limit)

    async def query_category(self, category: str, *, limit: int) -> QueryPage:
        self.calls.append("query_category")
        rows = sorted(
            (r for r in self.table.rows.values() if r.category == category),
            key=lambda r: r.version,
            reverse=True,
        )
        return self._page(rows, limit)

    async def scan(self, *, limit: int) -> QueryPage:
        self.calls.append("scan")
        return self._page(list(self.table.rows.values()), limit)

    async def purge_expired(self, now_seconds: int) -> int:
        self.calls.append("purge_expired")
        expired = [
            key for key, row in self.table.rows.items()
            if row.expires_at is not None and row.expires_at <= now_seconds
        ]
        for key in expired:
            del self.table.rows[key]
        return len(expired)

    async def close(self) -> None:
        self.closed = True
