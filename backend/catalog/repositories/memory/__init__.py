"""
In-Memory Repository Implementation Module Initialization
"""

from catalog.repositories.memory.product_store import InMemoryProductStore, InMemoryTable

__all__ = [
    "InMemoryProductStore",
    "InMemoryTable",
]
