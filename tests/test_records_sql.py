import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from canteen.database import init_db
from canteen.services.records import RecordStoreError, MENU_ITEMS, ORDERS, ORDER_ITEMS
from canteen.services.records.sql import SqlRecordStore


@pytest.fixture
async def sql_store():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(bind=engine, seed=True)
    yield SqlRecordStore(async_sessionmaker(bind=engine, expire_on_commit=False))
    await engine.dispose()


async def _order(store):
    return await store.insert(ORDERS, {
        "user_id": "user-1",
        "total_amount": 262.5,
        "payment_method": "card",
        "payment_status": "pending",
        "order_status": "pending",
    })


async def test_seeded_menu_is_queryable(sql_store):
    rows = await sql_store.query(
        MENU_ITEMS,
        {"type": "combo", "is_available": True},
        order_by="price",
    )

    assert [row["name"] for row in rows] == ["Breakfast Combo", "Student Combo", "Family Feast"]
    assert rows[0]["type"] == "combo"


async def test_offers_descending(sql_store):
    rows = await sql_store.query(
        MENU_ITEMS,
        {"is_special_offer": True},
        order_by="discount_percentage",
        descending=True,
    )

    assert [row["discount_percentage"] for row in rows] == [25.0, 20.0, 15.0, 10.0]


async def test_insert_returns_generated_fields(sql_store):
    order = await _order(sql_store)

    assert order["id"]
    assert order["created_at"]
    assert order["payment_method"] == "card"
    assert order["estimated_wait_time"] is None


async def test_insert_many_and_cascade_delete(sql_store):
    order = await _order(sql_store)
    menu = await sql_store.query(MENU_ITEMS, {"name": "Fish Fry"})

    items = await sql_store.insert_many(ORDER_ITEMS, [
        {"order_id": order["id"], "menu_item_id": menu[0]["id"], "quantity": 2, "price": 200.0},
    ])
    assert items[0]["quantity"] == 2

    deleted = await sql_store.delete(ORDERS, {"id": order["id"]})

    assert deleted == 1
    assert await sql_store.query(ORDERS) == []
    assert await sql_store.query(ORDER_ITEMS) == []


async def test_invalid_enum_value(sql_store):
    with pytest.raises(RecordStoreError) as exc_info:
        await sql_store.insert(ORDERS, {
            "user_id": "user-1",
            "total_amount": 10.0,
            "payment_method": "cheque",
        })

    assert exc_info.value.code == "invalid_value"


async def test_unknown_column(sql_store):
    with pytest.raises(RecordStoreError) as exc_info:
        await sql_store.query(MENU_ITEMS, {"colour": "red"})

    assert exc_info.value.code == "unknown_column"


async def test_health_check(sql_store):
    assert await sql_store.health_check() is True
