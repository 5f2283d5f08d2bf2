"""
Test In-Memory Product Store
"""

import pytest

from catalog.domain.product import Product, ProductKey, PutOutcome
from catalog.repositories.memory import InMemoryProductStore, InMemoryTable


@pytest.mark.asyncio
async def test_stores_sharing_a_table_see_same_rows():
    table = InMemoryTable()
    writer = InMemoryProductStore(table, kind="direct")
    reader = InMemoryProductStore(table, kind="accelerated")

    await writer.put_item(Product(product_id="p1", version=1, name="Widget"))
    page = await reader.query_versions("p1")

    assert page.items[0].name == "Widget"
    assert writer.write_calls == ["put_item"]
    assert reader.write_calls == []
    assert reader.calls == ["query_versions"]


@pytest.mark.asyncio
async def test_conditional_put_and_upsert():
    store = InMemoryProductStore()

    assert await store.put_item(Product(product_id="p1", version=1), only_if_absent=True) is PutOutcome.APPLIED
    assert (
        await store.put_item(Product(product_id="p1", version=1), only_if_absent=True)
        is PutOutcome.CONDITION_FAILED
    )

    row = await store.update_item(ProductKey("p2", 7), {"name": "New", "version": 99})
    assert row.key == ProductKey("p2", 7)
    assert row.name == "New"


@pytest.mark.asyncio
async def test_returned_rows_are_copies():
    store = InMemoryProductStore()
    await store.put_item(Product(product_id="p1", version=1, name="Widget"))

    page = await store.scan(limit=5)
    page.items[0].name = "Changed"

    assert store.table.rows[ProductKey("p1", 1)].name == "Widget"
