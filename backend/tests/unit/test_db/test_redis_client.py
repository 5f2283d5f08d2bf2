"""
Test Acceleration Cache Client Construction
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from catalog.common.errors import AccelerationUnavailableError
from catalog.db.redis import create_acceleration_client, normalize_endpoint


def test_normalize_endpoint():
    assert normalize_endpoint("cache.internal:6379") == "redis://cache.internal:6379"
    assert normalize_endpoint(" localhost:6379 ") == "redis://localhost:6379"
    assert normalize_endpoint("rediss://:pw@cache:6380/0") == "rediss://:pw@cache:6380/0"


@pytest.mark.asyncio
async def test_missing_endpoint(settings):
    with pytest.raises(AccelerationUnavailableError):
        await create_acceleration_client(settings)


@pytest.mark.asyncio
async def test_client_built_from_settings(settings_factory):
    settings = settings_factory(
        ACCELERATION_ENDPOINT="localhost:6379",
        ACCELERATION_CONNECT_TIMEOUT_SECONDS=2.0,
        ACCELERATION_REQUEST_TIMEOUT_SECONDS=4.0,
    )
    client = MagicMock()
    client.ping = AsyncMock(return_value=True)

    with patch("catalog.db.redis.Redis.from_url", return_value=client) as from_url:
        result = await create_acceleration_client(settings)

    assert result is client
    from_url.assert_called_once()
    args, kwargs = from_url.call_args
    assert args[0] == "redis://localhost:6379"
    assert kwargs["socket_connect_timeout"] == 2.0
    assert kwargs["socket_timeout"] == 4.0
    assert kwargs["decode_responses"] is True


@pytest.mark.asyncio
async def test_unreachable_cache_closes_client(settings_factory):
    settings = settings_factory(ACCELERATION_ENDPOINT="localhost:6379")
    client = MagicMock()
    client.ping = AsyncMock(side_effect=RedisConnectionError("connection refused"))
    client.aclose = AsyncMock()

    with patch("catalog.db.redis.Redis.from_url", return_value=client):
        with pytest.raises(AccelerationUnavailableError) as exc_info:
            await create_acceleration_client(settings)

    client.aclose.assert_awaited_once()
    assert "connection refused" in exc_info.value.details["reason"]


@pytest.mark.asyncio
async def test_malformed_endpoint(settings_factory):
    settings = settings_factory(ACCELERATION_ENDPOINT="localhost:6379")

    with patch("catalog.db.redis.Redis.from_url", side_effect=ValueError("bad url")):
        with pytest.raises(AccelerationUnavailableError):
            await create_acceleration_client(settings)
