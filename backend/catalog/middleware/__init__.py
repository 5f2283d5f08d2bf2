"""
Middleware Package

Contains application middleware components.
"""

from catalog.middleware.rate_limit import RateLimitMiddleware

__all__ = ["RateLimitMiddleware"]
