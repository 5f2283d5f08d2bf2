"""
API Router Module Initialization
"""

from catalog.api.deps import get_dispatcher, get_provisioner
from catalog.api.products import router as products_router

__all__ = [
    "get_dispatcher",
    "get_provisioner",
    "products_router",
]
