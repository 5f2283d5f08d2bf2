"""
Domain Model Module Initialization
"""

from catalog.domain.product import (
    Product,
    ProductCreate,
    ProductUpdate,
    ProductKey,
    QueryPage,
    PutOutcome,
)
from catalog.domain.operation import (
    OperationKind,
    OperationClass,
    OperationStatus,
    OperationRequest,
    OperationMetadata,
    OperationResult,
)

__all__ = [
    # Product
    "Product",
    "ProductCreate",
    "ProductUpdate",
    "ProductKey",
    "QueryPage",
    "PutOutcome",
    # Operation
    "OperationKind",
    "OperationClass",
    "OperationStatus",
    "OperationRequest",
    "OperationMetadata",
    "OperationResult",
]
