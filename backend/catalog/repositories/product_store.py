"""
Product Store Interface

Defines the capability set the catalog needs from a product store.
The direct store, the accelerated store and the in-memory test double
all implement it, so callers never see which one they hold.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional, Sequence

from catalog.domain.product import Product, ProductKey, PutOutcome, QueryPage


class ProductStore(ABC):
    """Product Store Interface"""

    # Short label used in logs ("direct", "accelerated", ...)
    kind: str = "store"

    @abstractmethod
    async def put_item(self, item: Product, *, only_if_absent: bool = False) -> PutOutcome:
        """
        Write a full row

        Args:
            item: Row to write
            only_if_absent: Only write if no row exists for item.key

        Returns:
            PutOutcome: CONDITION_FAILED when only_if_absent is set and the key is taken
        """
        pass

    @abstractmethod
    async def update_item(self, key: ProductKey, attributes: dict[str, Any]) -> Product:
        """
        Write only the given attributes of a row

        Attributes not listed are left untouched. A missing row is created
        from the key and the given attributes.

        Returns:
            Product: The full row after the write
        """
        pass

    @abstractmethod
    async def delete_item(self, key: ProductKey) -> None:
        """Delete one row. Deleting a missing row is not an error."""
        pass

    @abstractmethod
    async def batch_delete(self, keys: Sequence[ProductKey]) -> None:
        """
        Delete many rows

        Not atomic across rows: a failure part-way leaves earlier deletes applied.
        """
        pass

    @abstractmethod
    async def query_versions(
        self,
        product_id: str,
        *,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> QueryPage:
        """
        Get rows of one product ordered by version

        Args:
            product_id: Partition to read
            descending: Newest version first
            limit: Max rows, None for all
        """
        pass

    @abstractmethod
    async def query_category(self, category: str, *, limit: int) -> QueryPage:
        """Get up to `limit` rows of a category, newest version first"""
        pass

    @abstractmethod
    async def scan(self, *, limit: int) -> QueryPage:
        """Get up to `limit` rows of the table in no particular order"""
        pass

    @abstractmethod
    async def purge_expired(self, now_seconds: int) -> int:
        """
        Delete rows whose expiry has passed

        Returns:
            Number of deleted rows
        """
        pass

    async def invalidate(self, product_ids: Iterable[str]) -> None:
        """
        Drop cached results that may include the given products

        Stores without a cache have nothing to drop.
        """
        return None

    async def close(self) -> None:
        """Release connections held by the store"""
        return None
