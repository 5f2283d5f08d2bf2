"""
Rate Limit Middleware Module

Implements per-client-IP rate limiting with separate budgets for
product reads and product writes.
"""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from catalog.config import get_settings

logger = logging.getLogger(__name__)

READ_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

_UNIT_SECONDS = {
    "second": 1,
    "seconds": 1,
    "minute": 60,
    "minutes": 60,
    "hour": 3600,
    "hours": 3600,
    "day": 86400,
    "days": 86400,
}


def parse_rate_limit(limit: str) -> tuple[int, int]:
    """
    Parse rate limit string to requests count and window seconds.

    Args:
        limit: Rate limit string like "100/minute", "20/hour", etc.

    Returns:
        Tuple of (requests_count, window_seconds)

    Raises:
        ValueError: If rate limit format is invalid
    """
    parts = limit.lower().split("/")
    if len(parts) != 2:
        raise ValueError(f"Invalid rate limit format: {limit}")

    try:
        count = int(parts[0])
    except ValueError as exc:
        raise ValueError(f"Invalid request count in rate limit: {limit}") from exc

    unit = parts[1].strip()
    if unit not in _UNIT_SECONDS:
        raise ValueError(f"Unknown time unit in rate limit: {unit}")

    return count, _UNIT_SECONDS[unit]


class SlidingWindowLimiter:
    """
    In-memory sliding window limiter.

    Keeps request timestamps per key; counts are local to one process.
    """

    def __init__(self) -> None:
        self._hits: dict[str, list[float]] = {}

    def hit(self, key: str, max_requests: int, window_seconds: int) -> tuple[bool, int, int]:
        """
        Record a request for `key` if the window allows it.

        Returns:
            Tuple of (is_allowed, remaining_requests, retry_after_seconds)
        """
        now = time.time()
        window_start = now - window_seconds
        hits = [ts for ts in self._hits.get(key, []) if ts > window_start]

        if len(hits) >= max_requests:
            self._hits[key] = hits
            retry_after = int(hits[0] + window_seconds - now) + 1
            return False, 0, max(1, retry_after)

        hits.append(now)
        self._hits[key] = hits
        return True, max_requests - len(hits), 0

    def cleanup_expired(self, max_age_seconds: int = 3600) -> None:
        """Drop keys with no request in the last max_age_seconds."""
        cutoff = time.time() - max_age_seconds
        self._hits = {k: v for k, v in self._hits.items() if v and v[-1] > cutoff}


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rate Limit Middleware

    Limits apply per client IP:
    - Product reads (GET /products*): RATE_LIMIT_READ
    - Product writes (POST/PUT/DELETE /products*): RATE_LIMIT_WRITE
    - Other endpoints: RATE_LIMIT_DEFAULT
    Health and docs endpoints are not limited.
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        settings = get_settings()
        self.enabled = settings.RATE_LIMIT_ENABLED
        self._limiter = SlidingWindowLimiter()

        self._default = parse_rate_limit(settings.RATE_LIMIT_DEFAULT)
        self._read = parse_rate_limit(settings.RATE_LIMIT_READ)
        self._write = parse_rate_limit(settings.RATE_LIMIT_WRITE)

        logger.info(
            f"Rate limit middleware initialized: enabled={self.enabled}, "
            f"default={settings.RATE_LIMIT_DEFAULT}, read={settings.RATE_LIMIT_READ}, "
            f"write={settings.RATE_LIMIT_WRITE}"
        )

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP address from request."""
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            # Take the first IP (original client)
            return forwarded.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()

        if request.client:
            return request.client.host

        return "unknown"

    def _get_limits(self, method: str, path: str) -> tuple[str, int, int]:
        """
        Get the bucket and limits for a request.

        Returns:
            Tuple of (bucket, max_requests, window_seconds)
        """
        if path == "/products" or path.startswith("/products/"):
            if method in READ_METHODS:
                return ("read", *self._read)
            return ("write", *self._write)
        return ("default", *self._default)

    def _is_excluded_path(self, path: str) -> bool:
        """Check if path should be excluded from rate limiting."""
        if path == "/":
            return True
        excluded_prefixes = ("/health", "/docs", "/openapi.json", "/redoc", "/favicon.ico")
        return path.startswith(excluded_prefixes)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request through rate limiter."""
        if not self.enabled:
            return await call_next(request)

        path = request.url.path
        if self._is_excluded_path(path):
            return await call_next(request)

        bucket, max_requests, window_seconds = self._get_limits(request.method, path)
        key = f"{bucket}:{self._get_client_ip(request)}"

        is_allowed, remaining, retry_after = self._limiter.hit(key, max_requests, window_seconds)

        if not is_allowed:
            logger.warning(
                f"Rate limit exceeded: key={key}, path={path}, "
                f"limit={max_requests}/{window_seconds}s"
            )
            return JSONResponse(
                status_code=429,
                content={
                    "error": {
                        "message": "Rate limit exceeded. Please try again later.",
                        "type": "rate_limit_error",
                        "code": "rate_limit_exceeded",
                    }
                },
                headers={
                    "X-RateLimit-Limit": str(max_requests),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(retry_after),
                    "Retry-After": str(retry_after),
                },
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(max_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(window_seconds)

        return response
