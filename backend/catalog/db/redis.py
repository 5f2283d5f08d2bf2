"""
Redis Connection Module

Builds the Redis client behind the read acceleration cache.
Only used when ACCELERATION_ENDPOINT is set.
"""

import logging
import warnings
from urllib.parse import urlparse

from redis.asyncio import Redis
from redis.exceptions import RedisError

from catalog.common.errors import AccelerationUnavailableError
from catalog.config import Settings

logger = logging.getLogger(__name__)


def normalize_endpoint(endpoint: str) -> str:
    """
    Turn a bare "host:port" endpoint into a redis:// URL

    URLs that already carry a scheme are returned unchanged.
    """
    endpoint = endpoint.strip()
    if "://" not in endpoint:
        return f"redis://{endpoint}"
    return endpoint


def _check_redis_security(redis_url: str) -> None:
    """
    Check Redis connection security.

    Warns if Redis URL has no password and is not a localhost connection.
    """
    parsed = urlparse(redis_url)
    has_password = bool(parsed.password)
    is_localhost = parsed.hostname in ("localhost", "127.0.0.1", "::1")

    if not has_password and not is_localhost:
        warnings.warn(
            "SECURITY WARNING: acceleration cache connection has no password and is not connecting to localhost. "
            "Set a password in ACCELERATION_ENDPOINT using the format: redis://:password@host:port/db",
            UserWarning,
            stacklevel=3,
        )
        logger.warning(
            "Acceleration cache connection without password to non-localhost host detected."
        )


async def create_acceleration_client(settings: Settings) -> Redis:
    """
    Create and verify the acceleration cache client

    Args:
        settings: Application configuration

    Returns:
        Redis: Connected async Redis client

    Raises:
        AccelerationUnavailableError: Endpoint missing, malformed or unreachable
    """
    if not settings.ACCELERATION_ENDPOINT or not settings.ACCELERATION_ENDPOINT.strip():
        raise AccelerationUnavailableError(message="ACCELERATION_ENDPOINT not configured")

    url = normalize_endpoint(settings.ACCELERATION_ENDPOINT)
    _check_redis_security(url)

    try:
        client = Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=settings.ACCELERATION_CONNECT_TIMEOUT_SECONDS,
            socket_timeout=settings.ACCELERATION_REQUEST_TIMEOUT_SECONDS,
            max_connections=settings.ACCELERATION_MAX_CONNECTIONS,
        )
    except ValueError as e:
        raise AccelerationUnavailableError(
            message="Invalid ACCELERATION_ENDPOINT",
            details={"reason": str(e)},
        ) from e

    try:
        # Verify connectivity
        await client.ping()
    except (RedisError, OSError) as e:
        await client.aclose()
        raise AccelerationUnavailableError(
            message="Acceleration cache unreachable",
            details={"reason": str(e)},
        ) from e

    logger.info(f"Acceleration cache connection established: {urlparse(url).hostname}")
    return client
