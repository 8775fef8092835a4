import pytest

from canteen.models import ItemType
from canteen.services.catalog import (
    CatalogReader,
    COMBOS_LOAD_ERROR,
    MENU_LOAD_ERROR,
    OFFERS_LOAD_ERROR,
)
from canteen.services.records import InMemoryRecordStore, MENU_ITEMS


def _names(result):
    return [item.name for item in result.items]


class TestMenuViews:
    async def test_category_is_available_items_by_name(self, store):
        result = await CatalogReader(store).list_category(ItemType.VEG)

        assert result.success
        assert _names(result) == [
            "Chole Bhature",
            "Masala Dosa",
            "Paneer Butter Masala",
            "Veg Biryani",
        ]

    async def test_offers_by_discount_descending(self, store):
        result = await CatalogReader(store).list_offers()

        assert _names(result) == [
            "Family Feast",
            "Chicken Biryani",
            "Egg Fried Rice",
            "Masala Dosa",
        ]

    async def test_combos_by_price_ascending(self, store):
        result = await CatalogReader(store).list_combos()

        assert _names(result) == ["Breakfast Combo", "Student Combo", "Family Feast"]

    async def test_combo_category_uses_combo_ordering(self, store):
        result = await CatalogReader(store).list_category(ItemType.COMBO)

        assert _names(result) == ["Breakfast Combo", "Student Combo", "Family Feast"]

    async def test_unified_menu_splits_by_type(self, store):
        result = await CatalogReader(store).list_menu()

        assert "Veg Thali" not in _names(result)
        assert [item.name for item in result.by_type(ItemType.EGG)] == [
            "Egg Curry",
            "Egg Fried Rice",
            "Masala Omelette",
        ]

    async def test_get_item(self, store, menu_ids):
        reader = CatalogReader(store)

        found = await reader.get_item(menu_ids["Fish Fry"])
        unavailable = await reader.get_item(menu_ids["Veg Thali"])

        assert _names(found) == ["Fish Fry"]
        assert unavailable.success and unavailable.items == []


class TestInvalidRecords:
    @pytest.mark.parametrize("bad_fields", [
        {"discount_percentage": 150},
        {"discount_percentage": -5},
        {"type": "vegan"},
    ])
    async def test_invalid_rows_are_skipped(self, bad_fields):
        store = InMemoryRecordStore()
        await store.insert(MENU_ITEMS, {"name": "Good", "price": 50.0, "type": "veg"})
        await store.insert(MENU_ITEMS, {"name": "Bad", "price": 50.0, "type": "veg", **bad_fields})

        result = await CatalogReader(store).list_menu()

        assert result.success
        assert _names(result) == ["Good"]
        assert result.skipped == 1


class TestFailures:
    @pytest.mark.parametrize("method, message", [
        ("list_menu", MENU_LOAD_ERROR),
        ("list_offers", OFFERS_LOAD_ERROR),
        ("list_combos", COMBOS_LOAD_ERROR),
    ])
    async def test_store_failure_returns_generic_message(self, method, message):
        store = InMemoryRecordStore(failure_rate=1.0)

        result = await getattr(CatalogReader(store), method)()

        assert not result.success
        assert result.items == []
        assert result.error_message == message
