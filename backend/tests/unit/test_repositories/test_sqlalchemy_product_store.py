"""
Test SQLAlchemy Product Store
"""

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from catalog.common.errors import StoreError
from catalog.domain.product import Product, ProductKey, PutOutcome


def _product(product_id="p1", version=100, **fields) -> Product:
    values = {
        "name": "Widget",
        "category": "tools",
        "price": 9.99,
        "description": "",
        "stock": 0,
        "created_at": version,
        "updated_at": version,
    }
    values.update(fields)
    return Product(product_id=product_id, version=version, **values)


@pytest.mark.asyncio
async def test_put_and_query_versions(sql_store):
    """Test writing rows and reading them back ordered by version"""
    await sql_store.put_item(_product(version=100))
    await sql_store.put_item(_product(version=200))
    await sql_store.put_item(_product(version=150))

    ascending = await sql_store.query_versions("p1")
    assert [p.version for p in ascending.items] == [100, 150, 200]
    assert ascending.has_more is False

    latest = await sql_store.query_versions("p1", descending=True, limit=1)
    assert latest.count == 1
    assert latest.items[0].version == 200
    assert latest.has_more is True


@pytest.mark.asyncio
async def test_conditional_put_collision(sql_store):
    """Test a conditional put on a taken key fails and keeps the row"""
    first = await sql_store.put_item(_product(name="Original"), only_if_absent=True)
    assert first is PutOutcome.APPLIED

    second = await sql_store.put_item(_product(name="Intruder"), only_if_absent=True)
    assert second is PutOutcome.CONDITION_FAILED

    page = await sql_store.query_versions("p1")
    assert page.count == 1
    assert page.items[0].name == "Original"


@pytest.mark.asyncio
async def test_unconditional_put_replaces_row(sql_store):
    """Test a plain put overwrites the whole row"""
    await sql_store.put_item(_product(name="Original", stock=5))
    await sql_store.put_item(_product(name="Replaced", stock=1))

    page = await sql_store.query_versions("p1")
    assert page.count == 1
    assert page.items[0].name == "Replaced"
    assert page.items[0].stock == 1


@pytest.mark.asyncio
async def test_update_touches_only_given_attributes(sql_store):
    """Test a partial update keeps the other columns"""
    await sql_store.put_item(_product(description="A widget", stock=7))

    updated = await sql_store.update_item(
        ProductKey("p1", 100), {"price": 19.99, "updated_at": 300}
    )

    assert updated.price == 19.99
    assert updated.updated_at == 300
    assert updated.name == "Widget"
    assert updated.category == "tools"
    assert updated.description == "A widget"
    assert updated.stock == 7
    assert updated.created_at == 100


@pytest.mark.asyncio
async def test_update_missing_row_creates_it(sql_store):
    """Test updating an absent key writes a row with just the given attributes"""
    created = await sql_store.update_item(
        ProductKey("p2", 500), {"name": "Gadget", "updated_at": 500}
    )

    assert created.product_id == "p2"
    assert created.version == 500
    assert created.name == "Gadget"
    assert created.category is None
    assert created.created_at is None


@pytest.mark.asyncio
async def test_update_ignores_key_attributes(sql_store):
    """Test key columns in the attribute map never rename the row"""
    await sql_store.put_item(_product())

    updated = await sql_store.update_item(
        ProductKey("p1", 100), {"version": 999, "product_id": "other", "updated_at": 400}
    )

    assert updated.key == ProductKey("p1", 100)


@pytest.mark.asyncio
async def test_delete_item(sql_store):
    """Test deleting a single version"""
    await sql_store.put_item(_product(version=100))
    await sql_store.put_item(_product(version=200))

    await sql_store.delete_item(ProductKey("p1", 100))

    page = await sql_store.query_versions("p1")
    assert [p.version for p in page.items] == [200]


@pytest.mark.asyncio
async def test_delete_nonexistent_item(sql_store):
    """Test deleting a missing key is not an error"""
    await sql_store.delete_item(ProductKey("missing", 1))


@pytest.mark.asyncio
async def test_batch_delete_across_chunks(sql_store):
    """Test batch delete removes every key even when split into chunks"""
    for version in (100, 200, 300, 400, 500):
        await sql_store.put_item(_product(version=version))
    await sql_store.put_item(_product(product_id="keep", version=100))

    keys = [ProductKey("p1", v) for v in (100, 200, 300, 400, 500)]
    await sql_store.batch_delete(keys)

    assert (await sql_store.query_versions("p1")).count == 0
    assert (await sql_store.query_versions("keep")).count == 1


@pytest.mark.asyncio
async def test_query_category_with_limit(sql_store):
    """Test category query honors the limit and reports more results"""
    for i in range(5):
        await sql_store.put_item(_product(product_id=f"t{i}", version=100 + i))
    await sql_store.put_item(_product(product_id="g1", category="garden"))

    page = await sql_store.query_category("tools", limit=2)

    assert page.count == 2
    assert page.has_more is True
    assert all(p.category == "tools" for p in page.items)
    assert [p.version for p in page.items] == [104, 103]


@pytest.mark.asyncio
async def test_query_category_exact_fit(sql_store):
    """Test has_more is false when rows exactly fill the limit"""
    await sql_store.put_item(_product(product_id="a"))
    await sql_store.put_item(_product(product_id="b"))

    page = await sql_store.query_category("tools", limit=2)

    assert page.count == 2
    assert page.has_more is False


@pytest.mark.asyncio
async def test_scan_with_limit(sql_store):
    """Test scan is bounded by the limit"""
    for i in range(3):
        await sql_store.put_item(_product(product_id=f"s{i}"))

    page = await sql_store.scan(limit=2)
    assert page.count == 2
    assert page.has_more is True

    page = await sql_store.scan(limit=10)
    assert page.count == 3
    assert page.has_more is False


@pytest.mark.asyncio
async def test_purge_expired(sql_store):
    """Test purge removes only rows past their expiry"""
    await sql_store.put_item(_product(product_id="old", expires_at=1_000))
    await sql_store.put_item(_product(product_id="fresh", expires_at=5_000))
    await sql_store.put_item(_product(product_id="forever"))

    deleted = await sql_store.purge_expired(2_000)

    assert deleted == 1
    assert (await sql_store.query_versions("old")).count == 0
    assert (await sql_store.query_versions("fresh")).count == 1
    assert (await sql_store.query_versions("forever")).count == 1


@pytest.mark.asyncio
async def test_transient_failure_is_retried(sql_store):
    """Test an OperationalError is retried before succeeding"""
    calls = 0

    async def flaky(conn):
        nonlocal calls
        calls += 1
        if calls == 1:
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))
        return "ok"

    result = await sql_store._execute("flaky operation", flaky)

    assert result == "ok"
    assert calls == 2


@pytest.mark.asyncio
async def test_retries_exhausted_raise_store_error(sql_store):
    """Test repeated transient failures surface as StoreError with the reason"""

    async def always_locked(conn):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    with pytest.raises(StoreError) as exc_info:
        await sql_store._execute("locked operation", always_locked)

    assert "database is locked" in exc_info.value.details["reason"]


@pytest.mark.asyncio
async def test_request_timeout_raises_store_error(sql_store):
    """Test an operation exceeding the request timeout surfaces as StoreError"""
    sql_store.request_timeout = 0.01

    async def slow(conn):
        await asyncio.sleep(1)

    with pytest.raises(StoreError):
        await sql_store._execute("slow operation", slow)
