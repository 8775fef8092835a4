"""
SQLAlchemy Database Models

Tables behind the storefront's record store:
- menu_items: catalog, read-only for the storefront
- orders: one row per checkout
- order_items: line items snapshotted at checkout

Column names match the record keys used at the record-store boundary,
so the same dictionaries flow through the in-memory and SQL stores.

Version: 1.0.0
"""

import enum
import uuid

from sqlalchemy import Column, String, Float, Integer, DateTime, Text, Boolean, Enum, ForeignKey
from sqlalchemy.sql import func

from canteen.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _values(enum_class: type[enum.Enum]) -> list[str]:
    """Persist enum values ("non-veg"), not member names ("NON_VEG")."""
    return [member.value for member in enum_class]


class ItemType(str, enum.Enum):
    """Menu categories. Combos are bundled meals."""
    VEG = "veg"
    NON_VEG = "non-veg"
    EGG = "egg"
    COMBO = "combo"


class PaymentMethod(str, enum.Enum):
    """Payment methods offered at checkout."""
    UPI = "upi"
    CARD = "card"
    COD = "cod"


class PaymentStatus(str, enum.Enum):
    """Payment status, advanced by the fulfillment side."""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class OrderStatus(str, enum.Enum):
    """
    Order status workflow.

    pending -> preparing -> completed, or pending -> cancelled.
    The storefront only ever writes PENDING.
    """
    PENDING = "pending"
    PREPARING = "preparing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MenuItem(Base):
    """Catalog entry. Owned by the back office; the storefront only reads it."""
    __tablename__ = "menu_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(120), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    image_url = Column(String(500), nullable=True)
    is_available = Column(Boolean, default=True, nullable=False, index=True)
    type = Column(
        Enum(ItemType, name="item_type", values_callable=_values),
        nullable=False,
        index=True,
    )
    is_special_offer = Column(Boolean, default=False, nullable=False, index=True)
    discount_percentage = Column(Float, default=0.0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<MenuItem {self.name} - {self.type.value} - {self.price}>"


class Order(Base):
    """
    One placed order.

    total_amount is the checkout total (subtotal plus tax) as computed at
    submission; it is not re-derived from order_items afterwards.
    """
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    total_amount = Column(Float, nullable=False)
    payment_method = Column(
        Enum(PaymentMethod, name="payment_method", values_callable=_values),
        nullable=False,
    )
    payment_status = Column(
        Enum(PaymentStatus, name="payment_status", values_callable=_values),
        default=PaymentStatus.PENDING,
        nullable=False,
    )
    order_status = Column(
        Enum(OrderStatus, name="order_status", values_callable=_values),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True,
    )
    estimated_wait_time = Column(Integer, nullable=True)  # minutes
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self):
        return f"<Order {self.id} - {self.user_id} - {self.order_status.value}>"


class OrderItem(Base):
    """Line item of an order; price is the unit price at time of order."""
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    menu_item_id = Column(String(36), ForeignKey("menu_items.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<OrderItem {self.menu_item_id} x{self.quantity} @ {self.price}>"
