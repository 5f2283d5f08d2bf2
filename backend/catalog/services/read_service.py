"""
Product Read Service Module

Accelerated read path. Every call goes to the read handle, which is the
acceleration cache when available and the primary store otherwise.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from catalog.common.errors import NotFoundError, ValidationError
from catalog.common.timer import Timer
from catalog.domain.product import Product
from catalog.services.provisioner import StoreProvisioner

logger = logging.getLogger(__name__)


@dataclass
class ReadResult:
    """Single product read with acceleration metadata"""

    item: Product
    used_acceleration: bool
    latency_ms: int


@dataclass
class ListResult:
    """Product listing with acceleration metadata"""

    items: list[Product] = field(default_factory=list)
    has_more: bool = False
    used_acceleration: bool = False
    latency_ms: int = 0

    @property
    def count(self) -> int:
        return len(self.items)


class ProductReadService:
    """
    Product Read Service

    Unaware of which store backs the read handle; reports acceleration from
    configuration only.
    """

    def __init__(self, provisioner: StoreProvisioner, default_limit: int = 20):
        """
        Initialize Service

        Args:
            provisioner: Store provisioner
            default_limit: Page size when list() gets no limit
        """
        self.provisioner = provisioner
        self.default_limit = default_limit

    async def get_latest(self, product_id: Optional[str]) -> ReadResult:
        """
        Get the latest version of a product

        Raises:
            ValidationError: product_id missing
            NotFoundError: no version exists
        """
        if not product_id:
            raise ValidationError(message="ProductID is required", code="missing_product_id")

        store = await self.provisioner.get_read_handle()
        used_acceleration = self.provisioner.is_acceleration_configured()

        timer = Timer().start()
        page = await store.query_versions(product_id, descending=True, limit=1)
        timer.stop()

        logger.info(
            f"Query completed in {timer.total_time_ms}ms (using acceleration: {used_acceleration})"
        )

        if not page.items:
            raise NotFoundError(
                message="Product not found",
                code="product_not_found",
                details={"product_id": product_id},
            )

        return ReadResult(
            item=page.items[0],
            used_acceleration=used_acceleration,
            latency_ms=timer.total_time_ms,
        )

    async def list_products(self, category: Optional[str] = None, limit: Optional[int] = None) -> ListResult:
        """
        List products

        Queries the category index when a category is given, otherwise scans
        the table. Both are bounded by `limit`; no continuation is returned.
        """
        if limit is None:
            limit = self.default_limit
        if limit < 1:
            raise ValidationError(message="limit must be a positive integer", code="invalid_limit")

        store = await self.provisioner.get_read_handle()
        used_acceleration = self.provisioner.is_acceleration_configured()

        timer = Timer().start()
        if category:
            page = await store.query_category(category, limit=limit)
        else:
            # Full table scan, expensive on large tables
            page = await store.scan(limit=limit)
        timer.stop()

        logger.info(
            f"List query completed in {timer.total_time_ms}ms (using acceleration: {used_acceleration})"
        )

        return ListResult(
            items=page.items,
            has_more=page.has_more,
            used_acceleration=used_acceleration,
            latency_ms=timer.total_time_ms,
        )
