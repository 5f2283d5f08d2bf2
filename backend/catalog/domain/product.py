"""
Product Domain Model

Defines the versioned product row, its composite key and the store result types.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

# Fields a caller may change through an update
UPDATABLE_FIELDS = ("name", "category", "price", "description", "stock")

# Fields a create must carry
REQUIRED_CREATE_FIELDS = ("name", "category", "price")


class Product(BaseModel):
    """
    Stored Product Row

    One version of a product. A row written by a blind update only carries the
    attributes that update supplied, so everything but the key is optional here.
    """

    # Identity, immutable across versions
    product_id: str = Field(..., description="Product ID")
    # Epoch milliseconds; (product_id, version) is the primary key
    version: int = Field(..., description="Version")
    name: Optional[str] = Field(None, description="Name")
    category: Optional[str] = Field(None, description="Category")
    price: Optional[float] = Field(None, description="Price")
    description: Optional[str] = Field(None, description="Description")
    stock: Optional[int] = Field(None, description="Stock Quantity")
    # Epoch milliseconds
    created_at: Optional[int] = Field(None, description="Creation Time")
    updated_at: Optional[int] = Field(None, description="Update Time")
    # Epoch seconds, the store purges the row after this
    expires_at: Optional[int] = Field(None, description="Expiry Time")

    @property
    def key(self) -> "ProductKey":
        return ProductKey(self.product_id, self.version)


class ProductCreate(BaseModel):
    """
    Create Product Request Model

    Required fields are optional at the schema level so that the write path can
    report every missing field at once.
    """

    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    # Opt in to automatic expiry
    ttl: bool = False


class ProductUpdate(BaseModel):
    """Update Product Request Model (All fields optional)"""

    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    # Target an existing version instead of writing a new row
    version: Optional[int] = None


@dataclass(frozen=True)
class ProductKey:
    """Composite primary key of a product row"""

    product_id: str
    version: int


@dataclass
class QueryPage:
    """
    Query Result Page

    Rows returned by a bounded query, and whether more rows exist past the bound.
    """

    items: list[Product] = field(default_factory=list)
    has_more: bool = False

    @property
    def count(self) -> int:
        return len(self.items)


class PutOutcome(str, Enum):
    """Result of a (possibly conditional) put"""

    APPLIED = "applied"
    CONDITION_FAILED = "condition_failed"
