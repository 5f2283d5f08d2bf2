"""
Test Redis Read-Through Product Store
"""

import pytest

from catalog.domain.product import Product, ProductKey
from catalog.repositories.memory import InMemoryProductStore
from catalog.repositories.redis import RedisCachedProductStore


@pytest.fixture
def fake_client(fake_redis):
    return fake_redis


@pytest.fixture
def origin():
    return InMemoryProductStore(kind="direct")


@pytest.fixture
def store(fake_client, origin):
    return RedisCachedProductStore(fake_client, origin, ttl_seconds=60, namespace="test")


async def _seed(origin, product_id="p1", version=100, category="tools"):
    await origin.put_item(
        Product(product_id=product_id, version=version, name="Widget", category=category, price=1.0)
    )


@pytest.mark.asyncio
async def test_second_read_served_from_cache(store, origin, fake_client):
    """Test a repeated query hits the cache, not the origin"""
    await _seed(origin)

    first = await store.query_versions("p1", descending=True, limit=1)
    second = await store.query_versions("p1", descending=True, limit=1)

    assert first.items[0].version == 100
    assert second.items == first.items
    assert origin.calls.count("query_versions") == 1
    assert fake_client.expiry["test:versions:p1:desc:1"] == 60


@pytest.mark.asyncio
async def test_cached_page_keeps_has_more(store, origin):
    """Test has_more survives a cache round trip"""
    for i in range(3):
        await _seed(origin, product_id=f"p{i}", version=100 + i)

    await store.query_category("tools", limit=2)
    cached = await store.query_category("tools", limit=2)

    assert cached.count == 2
    assert cached.has_more is True
    assert origin.calls.count("query_category") == 1


@pytest.mark.asyncio
async def test_cache_failure_falls_back_to_origin(store, origin, fake_client):
    """Test a cache outage is absorbed and the origin answers"""
    await _seed(origin)
    fake_client.fail = True

    page = await store.scan(limit=10)

    assert page.count == 1
    assert origin.calls.count("scan") == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        '{"has_more": false}',
        '{"items": [{"name": "no key"}], "has_more": false}',
    ],
)
async def test_unreadable_cached_page_reads_origin(store, origin, fake_client, raw):
    """Test a corrupt cached page is replaced from the origin"""
    await _seed(origin)
    fake_client.data["test:versions:p1:desc:1"] = raw

    page = await store.query_versions("p1", descending=True, limit=1)

    assert page.items[0].version == 100
    assert origin.calls.count("query_versions") == 1
    assert fake_client.data["test:versions:p1:desc:1"] != raw
    cached = await store.query_versions("p1", descending=True, limit=1)
    assert cached.items == page.items
    assert origin.calls.count("query_versions") == 1


@pytest.mark.asyncio
async def test_invalidate_drops_product_and_listing_pages(store, origin, fake_client):
    """Test invalidate removes one product's pages and all listings, nothing else"""
    await _seed(origin, product_id="p1")
    await _seed(origin, product_id="p2", version=101)
    await store.query_versions("p1", descending=True, limit=1)
    await store.query_versions("p2", descending=True, limit=1)
    await store.query_category("tools", limit=10)
    await store.scan(limit=10)

    await store.invalidate(["p1"])

    assert sorted(fake_client.data) == ["test:versions:p2:desc:1"]
    assert origin.calls.count("query_versions") == 2


@pytest.mark.asyncio
async def test_invalidate_absorbs_cache_failure(store, fake_client):
    """Test invalidate never raises on a cache outage"""
    fake_client.fail = True

    await store.invalidate(["p1"])


@pytest.mark.asyncio
async def test_write_invalidates_cached_pages(store, origin):
    """Test a write through the store drops affected pages"""
    await _seed(origin)
    await store.query_versions("p1", descending=True, limit=1)
    await store.scan(limit=10)

    await store.update_item(ProductKey("p1", 100), {"name": "Renamed"})

    latest = await store.query_versions("p1", descending=True, limit=1)
    listing = await store.scan(limit=10)
    assert latest.items[0].name == "Renamed"
    assert listing.items[0].name == "Renamed"
    assert origin.calls.count("query_versions") == 2


@pytest.mark.asyncio
async def test_write_elsewhere_is_stale_until_ttl(store, origin):
    """Test writes that bypass the cache are not visible until the page expires"""
    await _seed(origin)
    await store.query_versions("p1", descending=True, limit=1)

    await origin.put_item(Product(product_id="p1", version=200, name="Newer"))

    cached = await store.query_versions("p1", descending=True, limit=1)
    assert cached.items[0].version == 100


@pytest.mark.asyncio
async def test_close_releases_client_and_origin(store, origin, fake_client):
    """Test close shuts both the client and the origin"""
    await store.close()

    assert fake_client.closed is True
    assert origin.closed is True
