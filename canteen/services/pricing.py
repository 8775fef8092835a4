"""
Pricing helpers.

Prices are kept at full float precision; only display strings are
rounded to two decimals.
"""

from canteen.models import ItemType
from canteen.schemas import MenuItemRecord


def discounted_price(base_price: float, discount_percentage: float) -> float:
    """
    Effective unit price after a percentage discount.

    The discount is not range-checked here; menu records are validated
    when they are read from the record store.

    >>> discounted_price(200, 20)
    160.0
    """
    return base_price * (1 - discount_percentage / 100)


def effective_discount(item: MenuItemRecord) -> float:
    """Discount that applies to an item: offers and combos only."""
    if item.is_special_offer or item.type == ItemType.COMBO:
        return item.discount_percentage
    return 0.0


def effective_unit_price(item: MenuItemRecord) -> float:
    """Unit price the cart stores for an item."""
    return discounted_price(item.price, effective_discount(item))


def calculate_checkout_totals(subtotal: float, tax_rate: float) -> dict[str, float]:
    """Calculate tax and final amount for a pre-tax cart subtotal."""
    tax = subtotal * tax_rate
    return {
        "subtotal": subtotal,
        "tax": tax,
        "total_amount": subtotal + tax,
    }


def format_price(amount: float, currency_symbol: str = "₹") -> str:
    """Display string, e.g. ``₹262.50``."""
    return f"{currency_symbol}{amount:.2f}"
