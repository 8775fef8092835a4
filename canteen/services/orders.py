"""
Order placement and order history.

Checkout writes one orders record, then one order_items record per cart
line. If the second write fails, the order written by the first is
deleted again so no order is left without items. Either way, a failed
checkout leaves the cart untouched so the shopper can retry.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from canteen.models import OrderStatus, PaymentMethod, PaymentStatus
from canteen.schemas import OrderItemRecord, OrderRecord
from canteen.services.pricing import calculate_checkout_totals
from canteen.services.records import BaseRecordStore, RecordStoreError, ORDERS, ORDER_ITEMS
from canteen.services.session import SessionContext

logger = logging.getLogger(__name__)

ORDER_PLACED = "Order placed successfully!"
SIGN_IN_REQUIRED = "Please sign in to place an order"
EMPTY_CART = "Your cart is empty"
PLACE_ORDER_FAILED = "Failed to place order"
ORDERS_LOAD_ERROR = "Failed to load orders"
ORDER_NOT_FOUND = "Order not found"

SIGN_IN_PATH = "/auth"
ORDER_HISTORY_PATH = "/orders"


@dataclass
class CheckoutResult:
    """
    Standardized result of a checkout attempt.

    Attributes:
        success: Whether the order and its items were written
        order: The created order record
        subtotal: Pre-tax cart total
        tax: Tax on the subtotal
        total_amount: Amount persisted on the order
        error_message: Message to show the shopper on failure
        error_code: not_signed_in, empty_cart, order_insert_failed
            or order_items_insert_failed
        redirect_to: View the shopper should be sent to next
    """
    success: bool
    order: Optional[OrderRecord] = None
    subtotal: float = 0.0
    tax: float = 0.0
    total_amount: float = 0.0
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    redirect_to: Optional[str] = None


class OrderSubmitter:
    """
    Turns a session's cart into an order.

    Example:
        >>> submitter = OrderSubmitter(get_record_store(), tax_rate=0.05)
        >>> result = await submitter.place_order(context, PaymentMethod.UPI)
        >>> if result.success:
        ...     print(result.order.id)
    """

    def __init__(self, store: BaseRecordStore, tax_rate: float):
        self.store = store
        self.tax_rate = tax_rate

    async def place_order(
        self,
        context: SessionContext,
        payment_method: PaymentMethod,
    ) -> CheckoutResult:
        """
        Place an order for the session's cart.

        Checkouts of one session run one at a time, so a repeated submit
        sees the cart the first one left behind.
        """
        async with context.checkout_lock:
            return await self._place_order(context, payment_method)

    async def _place_order(
        self,
        context: SessionContext,
        payment_method: PaymentMethod,
    ) -> CheckoutResult:
        if not context.is_authenticated:
            return CheckoutResult(
                success=False,
                error_message=SIGN_IN_REQUIRED,
                error_code="not_signed_in",
                redirect_to=SIGN_IN_PATH,
            )

        if context.cart.is_empty:
            return CheckoutResult(
                success=False,
                error_message=EMPTY_CART,
                error_code="empty_cart",
            )

        lines = context.cart.lines
        subtotal = sum(line.line_total for line in lines)
        totals = calculate_checkout_totals(subtotal, self.tax_rate)

        # Step 1: the order
        try:
            order_row = await self.store.insert(ORDERS, {
                "user_id": context.user.id,
                "total_amount": totals["total_amount"],
                "payment_method": payment_method.value,
                "payment_status": PaymentStatus.PENDING.value,
                "order_status": OrderStatus.PENDING.value,
            })
        except RecordStoreError as e:
            logger.error(f"Checkout: order insert failed for {context.user.id} - {e.message}")
            return CheckoutResult(
                success=False,
                error_message=e.message or PLACE_ORDER_FAILED,
                error_code="order_insert_failed",
                **totals,
            )

        order_id = order_row["id"]

        # Step 2: its items, priced as they were in the cart
        try:
            await self.store.insert_many(ORDER_ITEMS, [
                {
                    "order_id": order_id,
                    "menu_item_id": line.id,
                    "quantity": line.quantity,
                    "price": line.price,
                }
                for line in lines
            ])
        except RecordStoreError as e:
            logger.error(f"Checkout: order_items insert failed for order {order_id} - {e.message}")
            await self._discard_order(order_id)
            return CheckoutResult(
                success=False,
                error_message=e.message or PLACE_ORDER_FAILED,
                error_code="order_items_insert_failed",
                **totals,
            )

        context.cart.remove_ordered(lines)
        order = OrderRecord.model_validate(order_row)

        logger.info(
            f"Order {order.id} placed by {order.user_id}: "
            f"{len(lines)} line(s), total {order.total_amount:.2f} via {payment_method.value}"
        )

        return CheckoutResult(
            success=True,
            order=order,
            redirect_to=ORDER_HISTORY_PATH,
            **totals,
        )

    async def _discard_order(self, order_id: str) -> None:
        """Compensating delete for an order whose items could not be written."""
        try:
            deleted = await self.store.delete(ORDERS, {"id": order_id})
        except RecordStoreError as e:
            logger.error(
                f"Checkout: could not delete order {order_id} after item failure - "
                f"{e.message}; the order has no items"
            )
            return
        logger.warning(f"Checkout: deleted order {order_id} after item failure ({deleted} row)")


@dataclass
class OrderHistoryResult:
    success: bool
    orders: list[OrderRecord] = field(default_factory=list)
    error_message: Optional[str] = None


@dataclass
class OrderDetailResult:
    success: bool
    order: Optional[OrderRecord] = None
    items: list[OrderItemRecord] = field(default_factory=list)
    error_message: Optional[str] = None
    error_code: Optional[str] = None


class OrderHistory:
    """Reads a user's past orders. Status fields are read, never written."""

    def __init__(self, store: BaseRecordStore):
        self.store = store

    async def list_orders(self, user_id: str) -> OrderHistoryResult:
        """The user's orders, newest first."""
        try:
            rows = await self.store.query(
                ORDERS,
                filters={"user_id": user_id},
                order_by="created_at",
                descending=True,
            )
        except RecordStoreError as e:
            logger.error(f"Orders: history query for {user_id} failed - {e.message}")
            return OrderHistoryResult(success=False, error_message=ORDERS_LOAD_ERROR)

        return OrderHistoryResult(
            success=True,
            orders=[OrderRecord.model_validate(row) for row in rows],
        )

    async def get_order(self, user_id: str, order_id: str) -> OrderDetailResult:
        """One of the user's orders with its items."""
        try:
            rows = await self.store.query(ORDERS, filters={"id": order_id, "user_id": user_id})
            if not rows:
                return OrderDetailResult(
                    success=False,
                    error_message=ORDER_NOT_FOUND,
                    error_code="not_found",
                )
            item_rows = await self.store.query(ORDER_ITEMS, filters={"order_id": order_id})
        except RecordStoreError as e:
            logger.error(f"Orders: detail query for {order_id} failed - {e.message}")
            return OrderDetailResult(
                success=False,
                error_message=ORDERS_LOAD_ERROR,
                error_code="load_failed",
            )

        return OrderDetailResult(
            success=True,
            order=OrderRecord.model_validate(rows[0]),
            items=[OrderItemRecord.model_validate(row) for row in item_rows],
        )
