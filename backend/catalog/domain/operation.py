"""
Operation Domain Model

Defines the request and result shapes exchanged with the dispatcher.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from catalog.common.errors import AppError
from catalog.domain.product import ProductCreate, ProductUpdate


class OperationKind(str, Enum):
    """Operations the catalog accepts"""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    GET = "get"
    LIST = "list"


class OperationClass(str, Enum):
    """Which path an operation runs on"""

    READ = "read"
    WRITE = "write"


class OperationStatus(str, Enum):
    """Status classification of a finished operation"""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION_FAILURE = "validation_failure"
    INTERNAL_FAILURE = "internal_failure"


@dataclass
class OperationRequest:
    """
    Operation Request Data Class

    Identifying parameters of one externally triggered operation.
    `kind` stays a plain string so unknown kinds reach the dispatcher.
    """

    kind: str
    product_id: Optional[str] = None
    version: Optional[int] = None
    category: Optional[str] = None
    limit: Optional[int] = None
    payload: Optional[Union[ProductCreate, ProductUpdate]] = None


@dataclass
class OperationMetadata:
    """Per-call metadata returned alongside the body"""

    used_acceleration: bool
    operation: OperationClass
    latency_ms: Optional[int] = None
    has_more_results: Optional[bool] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "used_acceleration": self.used_acceleration,
            "operation": self.operation.value,
        }
        if self.latency_ms is not None:
            data["latency_ms"] = self.latency_ms
        if self.has_more_results is not None:
            data["has_more_results"] = self.has_more_results
        return data


@dataclass
class OperationResult:
    """
    Operation Result Data Class

    Exactly one of `body` (on success) or `error` (otherwise) is meaningful.
    """

    kind: Optional[OperationKind]
    status: OperationStatus
    metadata: OperationMetadata
    body: dict[str, Any] = field(default_factory=dict)
    error: Optional[AppError] = None

    @property
    def ok(self) -> bool:
        return self.status is OperationStatus.SUCCESS
