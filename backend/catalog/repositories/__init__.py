"""
Data Access Layer Module Initialization
"""

from catalog.repositories.product_store import ProductStore

__all__ = [
    "ProductStore",
]
