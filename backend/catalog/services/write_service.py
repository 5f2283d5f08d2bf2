"""
Product Write Service Module

Version-controlled write path. Every write goes to the direct store handle;
afterwards the cached reads of the written product are dropped, so a read
that follows a write is not answered from a page cached before it.
"""

import logging
import uuid
from typing import Any, Callable, Optional

from catalog.common.errors import ConflictError, ValidationError
from catalog.common.time import Clock, expires_after_days, now_millis
from catalog.domain.product import (
    REQUIRED_CREATE_FIELDS,
    UPDATABLE_FIELDS,
    Product,
    ProductCreate,
    ProductKey,
    ProductUpdate,
    PutOutcome,
)
from catalog.services.provisioner import StoreProvisioner

logger = logging.getLogger(__name__)


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class ProductWriteService:
    """
    Product Write Service

    Handles create / update / delete with optimistic versioning:
    every write is keyed by (product_id, version) where version is the write time in ms.
    """

    def __init__(
        self,
        provisioner: StoreProvisioner,
        clock: Clock = now_millis,
        ttl_days: int = 30,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        """
        Initialize Service

        Args:
            provisioner: Store provisioner
            clock: Returns the current epoch time in ms
            ttl_days: Lifetime of products created with ttl enabled
            id_factory: Generates new product ids
        """
        self.provisioner = provisioner
        self.clock = clock
        self.ttl_days = ttl_days
        self.id_factory = id_factory

    async def create(self, data: ProductCreate) -> Product:
        """
        Create Product

        Args:
            data: Creation data

        Returns:
            Product: Stored product

        Raises:
            ValidationError: Required fields missing (all of them are listed)
            ConflictError: (product_id, version) already exists
        """
        missing = [f for f in REQUIRED_CREATE_FIELDS if _is_missing(getattr(data, f))]
        if missing:
            raise ValidationError(
                message=f"Missing required fields: {', '.join(missing)}",
                code="missing_fields",
                details={"missing_fields": missing},
            )

        timestamp = self.clock()
        product = Product(
            product_id=self.id_factory(),
            version=timestamp,
            name=data.name,
            category=data.category,
            price=data.price,
            description=data.description or "",
            stock=data.stock or 0,
            created_at=timestamp,
            updated_at=timestamp,
            expires_at=expires_after_days(self.ttl_days, timestamp) if data.ttl else None,
        )

        store = await self.provisioner.get_write_handle()
        outcome = await store.put_item(product, only_if_absent=True)
        if outcome is PutOutcome.CONDITION_FAILED:
            raise ConflictError(
                message="Product version already exists",
                code="version_conflict",
                details={"product_id": product.product_id, "version": product.version},
            )

        await self.provisioner.invalidate(product.product_id)
        logger.info(f"Product created: {product.product_id} (version {product.version})")
        return product

    async def update(self, product_id: Optional[str], data: ProductUpdate) -> Product:
        """
        Update Product

        Writes only the supplied fields plus updated_at. Without `data.version`
        the write targets a new row keyed by the current time; with it, the
        write targets that exact row.

        Args:
            product_id: Product ID
            data: Update data

        Returns:
            Product: Row image after the write
        """
        if not product_id:
            raise ValidationError(message="ProductID is required", code="missing_product_id")

        timestamp = self.clock()
        supplied = data.model_dump(exclude_unset=True)
        attributes: dict[str, Any] = {
            field: supplied[field] for field in UPDATABLE_FIELDS if field in supplied
        }
        attributes["updated_at"] = timestamp

        key = ProductKey(product_id, data.version or timestamp)

        store = await self.provisioner.get_write_handle()
        product = await store.update_item(key, attributes)

        await self.provisioner.invalidate(product_id)
        logger.info(f"Product updated: {product_id} (version {key.version})")
        return product

    async def delete(self, product_id: Optional[str], version: Optional[int] = None) -> int:
        """
        Delete Product

        With a version, deletes that row only. Without one, deletes every
        version: the versions are enumerated first, then removed in one batch.
        A version written between the two steps is not deleted.

        Args:
            product_id: Product ID
            version: Version to delete, None for the full history

        Returns:
            int: Number of rows targeted
        """
        if not product_id:
            raise ValidationError(message="ProductID is required", code="missing_product_id")

        store = await self.provisioner.get_write_handle()

        if version is not None:
            await store.delete_item(ProductKey(product_id, version))
            await self.provisioner.invalidate(product_id)
            logger.info(f"Product deleted: {product_id} (version {version})")
            return 1

        page = await store.query_versions(product_id)
        keys = [item.key for item in page.items]
        if keys:
            await store.batch_delete(keys)
            await self.provisioner.invalidate(product_id)

        logger.info(f"Product deleted: {product_id} ({len(keys)} versions)")
        return len(keys)
