"""
Session cart.

An ordered collection of line items. A line's quantity is always at
least one: setting it to zero or below removes the line.
"""

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class CartLine:
    """One product in the cart. ``price`` is the discounted unit price."""
    id: str
    name: str
    price: float
    quantity: int = 1
    image_url: Optional[str] = None

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class CartStore:
    """
    Cart for a single storefront session.

    Example:
        >>> cart = CartStore()
        >>> _ = cart.add_to_cart("item-1", "Veg Biryani", 150.0)
        >>> _ = cart.add_to_cart("item-1", "Veg Biryani", 150.0)
        >>> cart.total_amount
        300.0
    """

    def __init__(self):
        self._lines: list[CartLine] = []

    def _find(self, item_id: str) -> Optional[CartLine]:
        for line in self._lines:
            if line.id == item_id:
                return line
        return None

    @property
    def lines(self) -> list[CartLine]:
        """Snapshot of the lines in insertion order."""
        return [
            CartLine(line.id, line.name, line.price, line.quantity, line.image_url)
            for line in self._lines
        ]

    @property
    def total_amount(self) -> float:
        """Sum of unit price times quantity over all lines."""
        return sum(line.line_total for line in self._lines)

    @property
    def total_items(self) -> int:
        """Number of units across all lines."""
        return sum(line.quantity for line in self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def add_to_cart(
        self,
        item_id: str,
        name: str,
        price: float,
        image_url: Optional[str] = None,
    ) -> CartLine:
        """Add one unit. An existing line for the same id is incremented."""
        line = self._find(item_id)
        if line:
            line.quantity += 1
        else:
            line = CartLine(id=item_id, name=name, price=price, image_url=image_url)
            self._lines.append(line)

        logger.debug(f"Cart: {item_id} x{line.quantity}")
        return line

    def remove_from_cart(self, item_id: str) -> bool:
        """Delete the line for ``item_id``. Returns False if there was none."""
        line = self._find(item_id)
        if line is None:
            return False
        self._lines.remove(line)
        logger.debug(f"Cart: removed {item_id}")
        return True

    def update_quantity(self, item_id: str, quantity: int) -> bool:
        """
        Set a line's quantity; zero or less removes the line.

        Returns False if no line matches ``item_id``.
        """
        if quantity <= 0:
            return self.remove_from_cart(item_id)

        line = self._find(item_id)
        if line is None:
            return False
        line.quantity = quantity
        logger.debug(f"Cart: {item_id} set to x{quantity}")
        return True

    def remove_ordered(self, ordered: list[CartLine]) -> None:
        """
        Take ordered quantities out of the cart.

        Units added after ``ordered`` was snapshotted stay in the cart.
        """
        for ordered_line in ordered:
            line = self._find(ordered_line.id)
            if line is None:
                continue
            line.quantity -= ordered_line.quantity
            if line.quantity <= 0:
                self._lines.remove(line)

    def clear_cart(self) -> None:
        self._lines.clear()

    def __len__(self) -> int:
        return len(self._lines)
