"""
Operation Dispatcher Module

Routes each operation to exactly one of the write path or the read path.
Writes (create / update / delete) run on the write service, which only ever
holds the direct store; reads (get / list) run on the read service.
"""

import logging
from typing import Optional

from catalog.common.errors import (
    AppError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from catalog.config import Settings
from catalog.domain.operation import (
    OperationClass,
    OperationKind,
    OperationMetadata,
    OperationRequest,
    OperationResult,
    OperationStatus,
)
from catalog.domain.product import ProductCreate, ProductUpdate
from catalog.services.provisioner import StoreProvisioner
from catalog.services.read_service import ProductReadService
from catalog.services.write_service import ProductWriteService

logger = logging.getLogger(__name__)

# Operation kind -> path. The only place this decision is made.
OPERATION_CLASSES: dict[OperationKind, OperationClass] = {
    OperationKind.CREATE: OperationClass.WRITE,
    OperationKind.UPDATE: OperationClass.WRITE,
    OperationKind.DELETE: OperationClass.WRITE,
    OperationKind.GET: OperationClass.READ,
    OperationKind.LIST: OperationClass.READ,
}

# Operations addressing a single product
_NEEDS_PRODUCT_ID = frozenset({OperationKind.GET, OperationKind.UPDATE, OperationKind.DELETE})


def classify_error(error: AppError) -> OperationStatus:
    """Map an application error to an operation status"""
    if isinstance(error, ValidationError):
        return OperationStatus.VALIDATION_FAILURE
    if isinstance(error, NotFoundError):
        return OperationStatus.NOT_FOUND
    if isinstance(error, ConflictError):
        return OperationStatus.CONFLICT
    return OperationStatus.INTERNAL_FAILURE


class OperationDispatcher:
    """
    Operation Dispatcher

    Validates routing parameters, runs the operation on its path and turns
    the outcome (or the error) into an OperationResult.
    """

    def __init__(
        self,
        settings: Settings,
        provisioner: StoreProvisioner,
        write_service: Optional[ProductWriteService] = None,
        read_service: Optional[ProductReadService] = None,
    ):
        self.settings = settings
        self.provisioner = provisioner
        self.write_service = write_service or ProductWriteService(
            provisioner, ttl_days=settings.PRODUCT_TTL_DAYS
        )
        self.read_service = read_service or ProductReadService(
            provisioner, default_limit=settings.LIST_DEFAULT_LIMIT
        )

    async def dispatch(self, request: OperationRequest) -> OperationResult:
        """
        Run one operation

        A missing TABLE_NAME fails every request, known operation or not,
        before anything is routed. Never raises for application errors; they
        come back as a result with a non-success status. Unexpected
        exceptions propagate.
        """
        kind = next((k for k in OperationKind if k.value == request.kind), None)
        op_class = OPERATION_CLASSES[kind] if kind is not None else OperationClass.READ

        if not self.settings.TABLE_NAME:
            logger.error("TABLE_NAME environment variable not configured")
            return self._failure(
                kind,
                op_class,
                ConfigurationError(message="TABLE_NAME environment variable not configured"),
            )

        if kind is None:
            logger.warning(f"Unknown operation: {request.kind!r}")
            return self._failure(
                None,
                op_class,
                NotFoundError(message="Route not found", code="route_not_found"),
            )

        logger.info(f"{kind.value} called ({op_class.value} path)")

        try:
            self._check_request(kind, request)
            if op_class is OperationClass.WRITE:
                return await self._dispatch_write(kind, request)
            return await self._dispatch_read(kind, request)
        except AppError as e:
            if isinstance(e, (StoreError, ConfigurationError)):
                logger.error(f"Error in {kind.value}: {e.message} {e.details}")
            return self._failure(kind, op_class, e)

    def _check_request(self, kind: OperationKind, request: OperationRequest) -> None:
        """Reject requests missing routing parameters"""
        if kind in _NEEDS_PRODUCT_ID and not request.product_id:
            raise ValidationError(message="ProductID is required", code="missing_product_id")
        if kind is OperationKind.CREATE and not isinstance(request.payload, ProductCreate):
            raise ValidationError(message="Request body is required", code="missing_body")
        if kind is OperationKind.UPDATE and not isinstance(request.payload, ProductUpdate):
            raise ValidationError(message="Request body is required", code="missing_body")

    async def _dispatch_write(
        self, kind: OperationKind, request: OperationRequest
    ) -> OperationResult:
        metadata = OperationMetadata(used_acceleration=False, operation=OperationClass.WRITE)

        if kind is OperationKind.CREATE:
            product = await self.write_service.create(request.payload)
            body = {"message": "Product created successfully", "product": product.model_dump()}
        elif kind is OperationKind.UPDATE:
            product = await self.write_service.update(request.product_id, request.payload)
            body = {"message": "Product updated successfully", "product": product.model_dump()}
        else:
            await self.write_service.delete(request.product_id, request.version)
            body = {"message": "Product deleted successfully"}

        return OperationResult(
            kind=kind, status=OperationStatus.SUCCESS, metadata=metadata, body=body
        )

    async def _dispatch_read(
        self, kind: OperationKind, request: OperationRequest
    ) -> OperationResult:
        if kind is OperationKind.GET:
            result = await self.read_service.get_latest(request.product_id)
            metadata = OperationMetadata(
                used_acceleration=result.used_acceleration,
                operation=OperationClass.READ,
                latency_ms=result.latency_ms,
            )
            body = {"product": result.item.model_dump()}
        else:
            listing = await self.read_service.list_products(request.category, request.limit)
            metadata = OperationMetadata(
                used_acceleration=listing.used_acceleration,
                operation=OperationClass.READ,
                latency_ms=listing.latency_ms,
                has_more_results=listing.has_more,
            )
            body = {
                "products": [p.model_dump() for p in listing.items],
                "count": listing.count,
            }

        return OperationResult(
            kind=kind, status=OperationStatus.SUCCESS, metadata=metadata, body=body
        )

    def _failure(
        self, kind: Optional[OperationKind], op_class: OperationClass, error: AppError
    ) -> OperationResult:
        used_acceleration = (
            op_class is OperationClass.READ and self.provisioner.is_acceleration_configured()
        )
        return OperationResult(
            kind=kind,
            status=classify_error(error),
            metadata=OperationMetadata(used_acceleration=used_acceleration, operation=op_class),
            error=error,
        )
