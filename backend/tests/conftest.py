"""
Test Configuration Module
"""

import fnmatch
import itertools
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from catalog.config import Settings
from catalog.db.models import product_table
from catalog.repositories.memory import InMemoryProductStore, InMemoryTable
from catalog.repositories.sqlalchemy import SQLAlchemyProductStore
from catalog.services.provisioner import StoreProvisioner


# Use in-memory database for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_TABLE_NAME = "products_test"


def make_settings(**overrides) -> Settings:
    """Settings isolated from the environment and .env"""
    values = {
        "TABLE_NAME": TEST_TABLE_NAME,
        "ACCELERATION_ENDPOINT": None,
        "RATE_LIMIT_ENABLED": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class StepClock:
    """Deterministic millisecond clock advancing by `step` per call"""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1):
        self._counter = itertools.count(start, step)
        self.last = None

    def __call__(self) -> int:
        self.last = next(self._counter)
        return self.last


class FakeRedis:
    """Dict-backed stand-in for the handful of client calls the store makes"""

    def __init__(self):
        self.data = {}
        self.expiry = {}
        self.fail = False
        self.closed = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("connection refused")

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self._check()
        self.data[key] = value
        self.expiry[key] = ex

    async def scan_iter(self, match=None):
        self._check()
        for key in list(self.data):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    async def delete(self, *keys):
        self._check()
        for key in keys:
            self.data.pop(key, None)

    async def aclose(self):
        self.closed = True


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def settings_factory():
    """Build isolated settings with overrides"""
    return make_settings


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def memory_table() -> InMemoryTable:
    return InMemoryTable()


@pytest.fixture
def tracked_stores(memory_table):
    """
    Store doubles over one shared table, keyed by role.

    "direct" is handed out for every direct-store build, "accelerated" for the
    accelerated build; both see the same rows but are distinct objects.
    """
    return {
        "direct": InMemoryProductStore(memory_table, kind="direct"),
        "accelerated": InMemoryProductStore(memory_table, kind="accelerated"),
    }


@pytest.fixture
def make_provisioner(tracked_stores):
    """Build a provisioner whose factories return the tracked doubles"""

    def _make(settings: Settings, accelerated_error: Exception = None) -> StoreProvisioner:
        async def direct_factory(_settings):
            return tracked_stores["direct"]

        async def accelerated_factory(_settings):
            if accelerated_error is not None:
                raise accelerated_error
            return tracked_stores["accelerated"]

        return StoreProvisioner(
            settings,
            direct_factory=direct_factory,
            accelerated_factory=accelerated_factory,
        )

    return _make


@pytest_asyncio.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create async database engine for testing"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
    )
    table = product_table(TEST_TABLE_NAME)

    async with engine.begin() as conn:
        await conn.run_sync(table.create)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def sql_store(async_engine) -> SQLAlchemyProductStore:
    """Direct store on the in-memory database"""
    return SQLAlchemyProductStore(
        async_engine,
        product_table(TEST_TABLE_NAME),
        max_retries=1,
        retry_delay_ms=1,
        batch_chunk_size=2,
    )


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()
