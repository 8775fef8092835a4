import pytest

from canteen.services.records import (
    InMemoryRecordStore,
    RecordStoreError,
    MENU_ITEMS,
    ORDERS,
    ORDER_ITEMS,
)


@pytest.fixture
def empty_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


async def _order(store, **fields):
    return await store.insert(ORDERS, {
        "user_id": "user-1",
        "total_amount": 105.0,
        "payment_method": "upi",
        **fields,
    })


class TestInsert:
    async def test_assigns_id_timestamp_and_defaults(self, empty_store):
        order = await _order(empty_store)

        assert order["id"]
        assert order["created_at"]
        assert order["payment_status"] == "pending"
        assert order["order_status"] == "pending"
        assert order["estimated_wait_time"] is None

    async def test_item_for_missing_order_is_rejected(self, empty_store):
        with pytest.raises(RecordStoreError) as exc_info:
            await empty_store.insert(ORDER_ITEMS, {
                "order_id": "missing",
                "menu_item_id": "m1",
                "quantity": 1,
                "price": 10.0,
            })

        assert exc_info.value.code == "foreign_key_violation"
        assert await empty_store.query(ORDER_ITEMS) == []

    async def test_batch_is_all_or_nothing(self, empty_store):
        order = await _order(empty_store)

        with pytest.raises(RecordStoreError):
            await empty_store.insert_many(ORDER_ITEMS, [
                {"order_id": order["id"], "menu_item_id": "m1", "quantity": 1, "price": 10.0},
                {"order_id": "missing", "menu_item_id": "m2", "quantity": 1, "price": 10.0},
            ])

        assert await empty_store.query(ORDER_ITEMS) == []

    async def test_unknown_table(self, empty_store):
        with pytest.raises(RecordStoreError) as exc_info:
            await empty_store.insert("payments", {"amount": 1})

        assert exc_info.value.code == "unknown_table"


class TestQuery:
    async def test_filters_and_orders(self, store):
        rows = await store.query(MENU_ITEMS, {"type": "combo"}, order_by="price", descending=True)

        assert [row["name"] for row in rows] == ["Family Feast", "Student Combo", "Breakfast Combo"]

    async def test_results_are_copies(self, store):
        rows = await store.query(MENU_ITEMS, {"name": "Fish Fry"})
        rows[0]["price"] = 1.0

        again = await store.query(MENU_ITEMS, {"name": "Fish Fry"})
        assert again[0]["price"] == 200.0

    async def test_nulls_sort_last(self, empty_store):
        await _order(empty_store, estimated_wait_time=None, user_id="a")
        await _order(empty_store, estimated_wait_time=20, user_id="b")
        await _order(empty_store, estimated_wait_time=10, user_id="c")

        rows = await empty_store.query(ORDERS, order_by="estimated_wait_time", descending=True)

        assert [row["user_id"] for row in rows] == ["b", "c", "a"]


class TestDelete:
    async def test_deleting_order_cascades_to_items(self, empty_store):
        order = await _order(empty_store)
        await empty_store.insert(ORDER_ITEMS, {
            "order_id": order["id"], "menu_item_id": "m1", "quantity": 2, "price": 50.0,
        })

        deleted = await empty_store.delete(ORDERS, {"id": order["id"]})

        assert deleted == 1
        assert await empty_store.query(ORDER_ITEMS) == []


async def test_simulated_outage():
    store = InMemoryRecordStore(failure_rate=1.0)

    with pytest.raises(RecordStoreError) as exc_info:
        await store.query(MENU_ITEMS)

    assert exc_info.value.code == "unavailable"
    assert await store.health_check() is True
