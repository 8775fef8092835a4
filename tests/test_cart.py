import pytest

from canteen.services.cart import CartStore
from canteen.services.pricing import discounted_price


@pytest.fixture
def cart() -> CartStore:
    return CartStore()


class TestAddToCart:
    def test_adding_twice_increments_one_line(self, cart):
        cart.add_to_cart("dosa", "Masala Dosa", 81.0)
        cart.add_to_cart("dosa", "Masala Dosa", 81.0)

        assert len(cart) == 1
        assert cart.lines[0].quantity == 2
        assert cart.total_items == 2

    def test_new_lines_keep_insertion_order(self, cart):
        cart.add_to_cart("b", "Veg Biryani", 150.0)
        cart.add_to_cart("a", "Egg Curry", 120.0)

        assert [line.id for line in cart.lines] == ["b", "a"]

    def test_lines_are_snapshots(self, cart):
        cart.add_to_cart("dosa", "Masala Dosa", 81.0)
        cart.lines[0].quantity = 50

        assert cart.lines[0].quantity == 1


class TestRemoveAndUpdate:
    def test_remove_deletes_line(self, cart):
        cart.add_to_cart("dosa", "Masala Dosa", 81.0)

        assert cart.remove_from_cart("dosa") is True
        assert cart.is_empty

    def test_remove_unknown_is_noop(self, cart):
        cart.add_to_cart("dosa", "Masala Dosa", 81.0)

        assert cart.remove_from_cart("missing") is False
        assert len(cart) == 1

    def test_update_sets_quantity(self, cart):
        cart.add_to_cart("dosa", "Masala Dosa", 80.0)

        assert cart.update_quantity("dosa", 3) is True
        assert cart.total_amount == pytest.approx(240.0)

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_update_to_zero_or_less_removes(self, cart, quantity):
        cart.add_to_cart("dosa", "Masala Dosa", 80.0)

        cart.update_quantity("dosa", quantity)

        assert cart.is_empty

    def test_update_unknown_returns_false(self, cart):
        assert cart.update_quantity("missing", 2) is False


def test_total_is_sum_of_lines(cart):
    cart.add_to_cart("biryani", "Chicken Biryani", 176.0)
    cart.add_to_cart("omelette", "Masala Omelette", 70.0)
    cart.update_quantity("omelette", 3)

    assert cart.total_amount == pytest.approx(176.0 + 210.0)
    assert cart.total_items == 4


def test_clear_empties_cart(cart):
    cart.add_to_cart("dosa", "Masala Dosa", 81.0)
    cart.clear_cart()

    assert cart.total_amount == 0
    assert cart.total_items == 0
    assert cart.lines == []


def test_mixed_quantities_scenario(cart):
    cart.add_to_cart("a", "Butter Chicken", 100.0)
    cart.add_to_cart("a", "Butter Chicken", 100.0)
    cart.add_to_cart("b", "Egg Curry", 50.0)

    assert cart.total_amount == 250.0


def test_discounted_item_added_twice(cart):
    price = discounted_price(200.0, 20)
    cart.add_to_cart("biryani", "Chicken Biryani", price)
    assert cart.lines[0].price == pytest.approx(160.0)

    cart.add_to_cart("biryani", "Chicken Biryani", price)
    assert cart.lines[0].quantity == 2
    assert cart.total_amount == pytest.approx(320.0)


class TestRemoveOrdered:
    def test_units_added_after_snapshot_stay(self, cart):
        cart.add_to_cart("dosa", "Masala Dosa", 81.0)
        ordered = cart.lines
        cart.add_to_cart("dosa", "Masala Dosa", 81.0)
        cart.add_to_cart("curry", "Egg Curry", 120.0)

        cart.remove_ordered(ordered)

        assert [(line.id, line.quantity) for line in cart.lines] == [("dosa", 1), ("curry", 1)]

    def test_removing_everything_ordered_empties_cart(self, cart):
        cart.add_to_cart("dosa", "Masala Dosa", 81.0)
        cart.update_quantity("dosa", 3)

        cart.remove_ordered(cart.lines)

        assert cart.is_empty


def test_large_quantities_are_allowed(cart):
    cart.add_to_cart("dosa", "Masala Dosa", 81.0)

    assert cart.update_quantity("dosa", 150) is True
    assert cart.total_items == 150
