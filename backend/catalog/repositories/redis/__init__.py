"""
Redis Repository Implementation Module Initialization
"""

from catalog.repositories.redis.product_store import RedisCachedProductStore

__all__ = [
    "RedisCachedProductStore",
]
