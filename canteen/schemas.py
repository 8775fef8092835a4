"""
Pydantic Schemas for Records, Requests and Responses

- Record schemas validate rows coming back from the record store
- Request schemas validate API input
- Response schemas shape what the storefront views render

Version: 1.0.0
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from canteen.models import ItemType, OrderStatus, PaymentMethod, PaymentStatus


# =============================================================================
# RECORD SCHEMAS (record store boundary)
# =============================================================================

class MenuItemRecord(BaseModel):
    """A menu_items row. Unknown item types and out-of-range discounts are rejected."""
    id: str
    name: str
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    image_url: Optional[str] = None
    is_available: bool = True
    type: ItemType
    is_special_offer: bool = False
    discount_percentage: float = Field(default=0.0, ge=0, le=100)
    created_at: Optional[datetime] = None


class OrderRecord(BaseModel):
    """An orders row."""
    id: str
    user_id: str
    total_amount: float
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    order_status: OrderStatus
    estimated_wait_time: Optional[int] = None
    created_at: datetime


class OrderItemRecord(BaseModel):
    """An order_items row."""
    id: Optional[str] = None
    order_id: str
    menu_item_id: str
    quantity: int = Field(..., ge=1)
    price: float


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class SignInRequest(BaseModel):
    """Email/password sign-in."""
    email: str = Field(..., min_length=3, max_length=255, examples=["asha@example.com"])
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class AddToCartRequest(BaseModel):
    """Add one unit of a menu item to the cart."""
    menu_item_id: str = Field(..., min_length=1)


class UpdateQuantityRequest(BaseModel):
    """Set a cart line's quantity. Zero or less removes the line."""
    quantity: int = Field(..., examples=[2])


class CheckoutRequest(BaseModel):
    """Place an order for the current cart."""
    payment_method: PaymentMethod = Field(default=PaymentMethod.UPI, examples=["upi", "card", "cod"])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class MenuItemResponse(BaseModel):
    """A menu item as shown in a listing."""
    id: str
    name: str
    description: Optional[str]
    price: float
    image_url: Optional[str]
    type: ItemType
    is_special_offer: bool
    discount_percentage: float
    final_price: float
    display_price: str
    display_final_price: str


class MenuListResponse(BaseModel):
    """One catalog view (category, combos or offers)."""
    success: bool
    message: Optional[str] = None
    total: int
    items: List[MenuItemResponse]


class MenuOverviewResponse(BaseModel):
    """The unified menu, split into dietary sections."""
    success: bool
    message: Optional[str] = None
    veg: List[MenuItemResponse]
    egg: List[MenuItemResponse]
    non_veg: List[MenuItemResponse]


class CartLineResponse(BaseModel):
    id: str
    name: str
    price: float
    quantity: int
    image_url: Optional[str]
    line_total: float
    display_line_total: str


class CartResponse(BaseModel):
    """Cart contents with the totals shown at checkout."""
    success: bool = True
    message: Optional[str] = None
    items: List[CartLineResponse]
    total_items: int
    subtotal: float
    tax: float
    total_amount: float
    display_subtotal: str
    display_tax: str
    display_total: str


class UserResponse(BaseModel):
    id: str
    email: Optional[str]


class AuthResponse(BaseModel):
    """Result of a sign-in, sign-out or identity lookup."""
    success: bool
    message: Optional[str] = None
    user: Optional[UserResponse] = None


class CheckoutResponse(BaseModel):
    """Response after successfully placing an order."""
    success: bool
    message: str
    order_id: str
    total_amount: float
    display_total: str
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    order_status: OrderStatus
    redirect_to: str = "/orders"


class OrderResponse(OrderRecord):
    """An order in the history view."""
    display_total: str


class OrderItemResponse(BaseModel):
    menu_item_id: str
    quantity: int
    price: float
    line_total: float


class OrderDetailResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    order: OrderResponse
    items: List[OrderItemResponse]


class OrderListResponse(BaseModel):
    """Response for the order history view."""
    success: bool
    message: Optional[str] = None
    total: int
    orders: List[OrderResponse]


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None
    redirect_to: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    record_store: str
    identity_service: str
    timestamp: datetime
