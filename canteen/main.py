"""
FastAPI Application Entry Point

Tasty Canteen storefront API - Hybrid Architecture
In-memory record store and mock sign-in in development; PostgreSQL and the
hosted identity API in staging/production.

Endpoints:
    - POST /auth/sign-in, /auth/sign-out, GET /auth/me: identity
    - GET /api/menu, /api/menu/{item_type}, /api/offers, /api/combos: catalog
    - GET/POST/PATCH/DELETE /api/cart...: session cart
    - POST /api/checkout: place an order
    - GET /api/orders, /api/orders/{order_id}: order history
    - GET /health: System health check

Version: 1.0.0
"""

import asyncio
import sys
import logging
from datetime import datetime
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request, Response
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

# Windows-specific event loop policy (psycopg async needs a selector loop)
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Internal imports
from canteen.core.config import get_settings, setup_logging
from canteen.models import ItemType
from canteen.schemas import (
    AddToCartRequest,
    AuthResponse,
    CartLineResponse,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    ErrorResponse,
    HealthResponse,
    MenuItemRecord,
    MenuItemResponse,
    MenuListResponse,
    MenuOverviewResponse,
    OrderDetailResponse,
    OrderItemResponse,
    OrderListResponse,
    OrderRecord,
    OrderResponse,
    SignInRequest,
    UpdateQuantityRequest,
    UserResponse,
)
from canteen.services.cart import CartStore
from canteen.services.catalog import CatalogReader, CatalogResult
from canteen.services.identity import (
    BaseIdentityService,
    IdentityServiceError,
    get_identity_service,
)
from canteen.services.orders import (
    OrderHistory,
    OrderSubmitter,
    ORDER_PLACED,
    SIGN_IN_PATH,
)
from canteen.services.pricing import (
    calculate_checkout_totals,
    effective_unit_price,
    format_price,
)
from canteen.services.records import BaseRecordStore, get_record_store
from canteen.services.session import SessionContext, SessionRegistry, get_session_registry

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    # Validate production config
    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

        from canteen.database import init_db
        await init_db(seed=settings.seed_menu)
        logger.info("✅ Database initialized")

    record_store = get_record_store()
    identity_service = get_identity_service()
    logger.info(f"✅ Record Store: {record_store.provider_name}")
    logger.info(f"✅ Identity Service: {identity_service.provider_name}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    get_session_registry().close_all()
    await identity_service.close()
    if settings.use_real_services:
        from canteen.database import engine
        await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Food-ordering storefront: menu, special offers, combos, "
        "session cart, checkout and order history."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# DEPENDENCIES
# =============================================================================

def find_session_context(
    request: Request,
    registry: SessionRegistry = Depends(get_session_registry),
) -> Optional[SessionContext]:
    """Resolve the caller's session from its cookie without opening one."""
    session_id = request.cookies.get(settings.session_cookie_name)
    return registry.get(session_id) if session_id else None


def get_session_context(
    response: Response,
    context: Optional[SessionContext] = Depends(find_session_context),
    registry: SessionRegistry = Depends(get_session_registry),
) -> SessionContext:
    """Resolve the caller's session, opening one if needed."""
    if context is None:
        context = registry.open()
        response.set_cookie(
            settings.session_cookie_name,
            context.session_id,
            httponly=True,
            samesite="lax",
        )
    return context


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _error(status_code: int, error: str, detail: Optional[str] = None,
           redirect_to: Optional[str] = None,
           response: Optional[Response] = None) -> JSONResponse:
    error_response = JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=detail, redirect_to=redirect_to).model_dump(),
    )
    # Keep a session cookie set earlier in the request
    if response is not None:
        for cookie in response.headers.getlist("set-cookie"):
            error_response.headers.append("set-cookie", cookie)
    return error_response


def _not_signed_in() -> JSONResponse:
    return _error(401, "Please sign in to continue", detail="not_signed_in", redirect_to=SIGN_IN_PATH)


def _menu_item(item: MenuItemRecord) -> MenuItemResponse:
    final_price = effective_unit_price(item)
    return MenuItemResponse(
        id=item.id,
        name=item.name,
        description=item.description,
        price=item.price,
        image_url=item.image_url,
        type=item.type,
        is_special_offer=item.is_special_offer,
        discount_percentage=item.discount_percentage,
        final_price=final_price,
        display_price=format_price(item.price, settings.currency_symbol),
        display_final_price=format_price(final_price, settings.currency_symbol),
    )


def _menu_list(result: CatalogResult) -> MenuListResponse:
    return MenuListResponse(
        success=result.success,
        message=result.error_message,
        total=len(result.items),
        items=[_menu_item(item) for item in result.items],
    )


def _cart(cart: CartStore, message: Optional[str] = None) -> CartResponse:
    totals = calculate_checkout_totals(cart.total_amount, settings.tax_rate)
    symbol = settings.currency_symbol
    return CartResponse(
        message=message,
        items=[
            CartLineResponse(
                id=line.id,
                name=line.name,
                price=line.price,
                quantity=line.quantity,
                image_url=line.image_url,
                line_total=line.line_total,
                display_line_total=format_price(line.line_total, symbol),
            )
            for line in cart.lines
        ],
        total_items=cart.total_items,
        subtotal=totals["subtotal"],
        tax=totals["tax"],
        total_amount=totals["total_amount"],
        display_subtotal=format_price(totals["subtotal"], symbol),
        display_tax=format_price(totals["tax"], symbol),
        display_total=format_price(totals["total_amount"], symbol),
    )


def _order(order: OrderRecord) -> OrderResponse:
    return OrderResponse(
        **order.model_dump(),
        display_total=format_price(order.total_amount, settings.currency_symbol),
    )


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍛 Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "menu": "/api/menu",
        "offers": "/api/offers",
        "combos": "/api/combos",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    store: BaseRecordStore = Depends(get_record_store),
    identity: BaseIdentityService = Depends(get_identity_service),
) -> HealthResponse:
    """Verify the record store and identity service are reachable."""
    store_status = "healthy" if await store.health_check() else "unhealthy"
    identity_status = "healthy" if await identity.health_check() else "unhealthy"

    overall = "operational" if store_status == identity_status == "healthy" else "degraded"

    return HealthResponse(
        status=overall,
        record_store=store_status,
        identity_service=identity_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# IDENTITY ENDPOINTS
# =============================================================================

@app.post(
    "/auth/sign-in",
    response_model=AuthResponse,
    responses={401: {"model": ErrorResponse}},
    tags=["Auth"],
)
async def sign_in(
    credentials: SignInRequest,
    response: Response,
    context: SessionContext = Depends(get_session_context),
    identity: BaseIdentityService = Depends(get_identity_service),
):
    """Sign the current session in with email and password."""
    result = await identity.sign_in(credentials.email, credentials.password)
    if not result.success:
        return _error(
            401,
            result.error_message or "Sign-in failed",
            detail=result.error_code,
            response=response,
        )

    context.sign_in(result.user, result.access_token)
    return AuthResponse(
        success=True,
        message="Signed in successfully!",
        user=UserResponse(id=result.user.id, email=result.user.email),
    )


@app.post("/auth/sign-out", response_model=AuthResponse, tags=["Auth"])
async def sign_out(
    context: Optional[SessionContext] = Depends(find_session_context),
    identity: BaseIdentityService = Depends(get_identity_service),
) -> AuthResponse:
    """Sign the current session out. The cart is kept."""
    if context is None:
        return AuthResponse(success=True, message="Signed out")

    if context.access_token:
        await identity.sign_out(context.access_token)
    context.sign_out()
    return AuthResponse(success=True, message="Signed out")


@app.get(
    "/auth/me",
    response_model=AuthResponse,
    responses={503: {"model": ErrorResponse}},
    tags=["Auth"],
)
async def current_user(
    context: Optional[SessionContext] = Depends(find_session_context),
    identity: BaseIdentityService = Depends(get_identity_service),
):
    """Return the signed-in user, re-checking the token with the identity service."""
    if context is None or not context.is_authenticated:
        return AuthResponse(success=False, message="Not signed in")

    try:
        user = await identity.get_user(context.access_token)
    except IdentityServiceError as e:
        # Outage: keep the session signed in and let the shopper retry
        logger.warning(f"Identity lookup failed for session, keeping sign-in - {e.message}")
        return _error(503, e.message, detail=e.code)

    if user is None:
        context.sign_out()
        return AuthResponse(success=False, message="Your session has expired. Please sign in again.")

    return AuthResponse(success=True, user=UserResponse(id=user.id, email=user.email))


# =============================================================================
# CATALOG ENDPOINTS
# =============================================================================

@app.get("/api/menu", response_model=MenuOverviewResponse, tags=["Menu"])
async def menu_overview(
    store: BaseRecordStore = Depends(get_record_store),
) -> MenuOverviewResponse:
    """All available items, split into vegetarian, egg and non-vegetarian."""
    result = await CatalogReader(store).list_menu()
    return MenuOverviewResponse(
        success=result.success,
        message=result.error_message,
        veg=[_menu_item(item) for item in result.by_type(ItemType.VEG)],
        egg=[_menu_item(item) for item in result.by_type(ItemType.EGG)],
        non_veg=[_menu_item(item) for item in result.by_type(ItemType.NON_VEG)],
    )


@app.get("/api/menu/{item_type}", response_model=MenuListResponse, tags=["Menu"])
async def menu_category(
    item_type: ItemType,
    store: BaseRecordStore = Depends(get_record_store),
) -> MenuListResponse:
    """Available items of one category."""
    return _menu_list(await CatalogReader(store).list_category(item_type))


@app.get("/api/offers", response_model=MenuListResponse, tags=["Menu"])
async def special_offers(
    store: BaseRecordStore = Depends(get_record_store),
) -> MenuListResponse:
    """Special offers, biggest discount first."""
    return _menu_list(await CatalogReader(store).list_offers())


@app.get("/api/combos", response_model=MenuListResponse, tags=["Menu"])
async def combos(
    store: BaseRecordStore = Depends(get_record_store),
) -> MenuListResponse:
    """Combo meals, cheapest first."""
    return _menu_list(await CatalogReader(store).list_combos())


# =============================================================================
# CART ENDPOINTS
# =============================================================================

@app.get("/api/cart", response_model=CartResponse, tags=["Cart"])
async def view_cart(
    context: Optional[SessionContext] = Depends(find_session_context),
) -> CartResponse:
    """The session's cart. A caller without a session sees an empty cart."""
    return _cart(context.cart if context else CartStore())


@app.post(
    "/api/cart/items",
    response_model=CartResponse,
    responses={404: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    tags=["Cart"],
)
async def add_to_cart(
    body: AddToCartRequest,
    response: Response,
    context: SessionContext = Depends(get_session_context),
    store: BaseRecordStore = Depends(get_record_store),
):
    """Add one unit of a menu item at its current (discounted) price."""
    result = await CatalogReader(store).get_item(body.menu_item_id)
    if not result.success:
        return _error(502, result.error_message, detail="load_failed", response=response)
    if not result.items:
        return _error(404, "Menu item not found or unavailable", detail="not_found", response=response)

    item = result.items[0]
    context.cart.add_to_cart(item.id, item.name, effective_unit_price(item), item.image_url)
    return _cart(context.cart, message=f"{item.name} added to cart!")


@app.patch(
    "/api/cart/items/{item_id}",
    response_model=CartResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Cart"],
)
async def update_cart_item(
    item_id: str,
    body: UpdateQuantityRequest,
    response: Response,
    context: SessionContext = Depends(get_session_context),
):
    """Set a line's quantity; zero or less removes the line."""
    if not context.cart.update_quantity(item_id, body.quantity):
        return _error(404, "Item is not in the cart", detail="not_found", response=response)
    return _cart(context.cart)


@app.delete("/api/cart/items/{item_id}", response_model=CartResponse, tags=["Cart"])
async def remove_cart_item(
    item_id: str,
    context: SessionContext = Depends(get_session_context),
) -> CartResponse:
    """Remove a line. Removing an item that is not in the cart is a no-op."""
    context.cart.remove_from_cart(item_id)
    return _cart(context.cart)


@app.delete("/api/cart", response_model=CartResponse, tags=["Cart"])
async def clear_cart(
    context: SessionContext = Depends(get_session_context),
) -> CartResponse:
    context.cart.clear_cart()
    return _cart(context.cart)


# =============================================================================
# CHECKOUT & ORDER ENDPOINTS
# =============================================================================

@app.post(
    "/api/checkout",
    response_model=CheckoutResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    tags=["Orders"],
    summary="Place Order",
)
async def checkout(
    body: CheckoutRequest,
    context: Optional[SessionContext] = Depends(find_session_context),
    store: BaseRecordStore = Depends(get_record_store),
):
    """
    Place an order for the session's cart.

    Writes the order and then its items. On success the ordered lines
    leave the cart and the shopper is pointed at the order history; on
    failure the cart is kept so they can retry.
    """
    if context is None:
        return _not_signed_in()

    submitter = OrderSubmitter(store, tax_rate=settings.tax_rate)
    result = await submitter.place_order(context, body.payment_method)

    if not result.success:
        status_code = {"not_signed_in": 401, "empty_cart": 400}.get(result.error_code, 502)
        return _error(
            status_code,
            result.error_message,
            detail=result.error_code,
            redirect_to=result.redirect_to,
        )

    order = result.order
    return CheckoutResponse(
        success=True,
        message=ORDER_PLACED,
        order_id=order.id,
        total_amount=order.total_amount,
        display_total=format_price(order.total_amount, settings.currency_symbol),
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        order_status=order.order_status,
        redirect_to=result.redirect_to,
    )


@app.get(
    "/api/orders",
    response_model=OrderListResponse,
    responses={401: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def list_orders(
    context: Optional[SessionContext] = Depends(find_session_context),
    store: BaseRecordStore = Depends(get_record_store),
):
    """The signed-in user's orders, newest first."""
    if context is None or not context.is_authenticated:
        return _not_signed_in()

    result = await OrderHistory(store).list_orders(context.user.id)
    return OrderListResponse(
        success=result.success,
        message=result.error_message,
        total=len(result.orders),
        orders=[_order(order) for order in result.orders],
    )


@app.get(
    "/api/orders/{order_id}",
    response_model=OrderDetailResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def get_order(
    order_id: str,
    context: Optional[SessionContext] = Depends(find_session_context),
    store: BaseRecordStore = Depends(get_record_store),
):
    """One of the signed-in user's orders with its items."""
    if context is None or not context.is_authenticated:
        return _not_signed_in()

    result = await OrderHistory(store).get_order(context.user.id, order_id)
    if not result.success:
        status_code = 404 if result.error_code == "not_found" else 502
        return _error(status_code, result.error_message, detail=result.error_code)

    return OrderDetailResponse(
        success=True,
        order=_order(result.order),
        items=[
            OrderItemResponse(
                menu_item_id=item.menu_item_id,
                quantity=item.quantity,
                price=item.price,
                line_total=item.price * item.quantity,
            )
            for item in result.items
        ],
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )
