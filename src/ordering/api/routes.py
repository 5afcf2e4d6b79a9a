"""FastAPI routes for the Ordering domain: cart, orders and admin reporting."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from identity.user.auth import current_user, require_admin
from identity.user.user import User
from ordering.api.dependencies import get_cart_store, get_dashboard, get_engine
from ordering.api.schemas import (
    AddToCartRequest,
    CartCountResponse,
    CartResponse,
    CartValidationResponse,
    CreateOrderRequest,
    DashboardResponse,
    OrderFilters,
    OrderListResponse,
    OrderResponse,
    OrderStatsResponse,
    PaymentLinkResponse,
    PaymentStatusResponse,
    ShippingAddress,
    UpdateCartQuantityRequest,
    UpdateOrderStatusRequest,
)
from ordering.cart.store import CartStore
from ordering.order.engine import OrderLifecycleEngine
from ordering.order.order import OrderStatus, PaymentStatus
from ordering.reporting.dashboard import DashboardAggregator
from shared.db import as_naive_utc

# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
def get_cart(user: User = Depends(current_user), carts: CartStore = Depends(get_cart_store)):
    return carts.get_or_create(user.id)


@cart_router.post("/items", response_model=CartResponse)
def add_cart_item(
    body: AddToCartRequest,
    user: User = Depends(current_user),
    carts: CartStore = Depends(get_cart_store),
):
    return carts.add_item(user.id, body.product_id, body.quantity)


@cart_router.put("/items/{product_id}", response_model=CartResponse)
def update_cart_item(
    product_id: str,
    body: UpdateCartQuantityRequest,
    user: User = Depends(current_user),
    carts: CartStore = Depends(get_cart_store),
):
    """Set a line's quantity; ``0`` removes the line."""
    return carts.update_item(user.id, product_id, body.quantity)


@cart_router.delete("/items/{product_id}", response_model=CartResponse)
def remove_cart_item(product_id: str, user: User = Depends(current_user), carts: CartStore = Depends(get_cart_store)):
    return carts.remove_item(user.id, product_id)


@cart_router.delete("", response_model=CartResponse)
def clear_cart(user: User = Depends(current_user), carts: CartStore = Depends(get_cart_store)):
    return carts.clear(user.id)


@cart_router.get("/count", response_model=CartCountResponse)
def cart_count(user: User = Depends(current_user), carts: CartStore = Depends(get_cart_store)) -> CartCountResponse:
    return CartCountResponse(count=carts.count(user.id))


@cart_router.get("/validate", response_model=CartValidationResponse)
def validate_cart(
    user: User = Depends(current_user), carts: CartStore = Depends(get_cart_store)
) -> CartValidationResponse:
    return CartValidationResponse(**carts.validate(user.id))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


def order_filters(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user_id: str | None = None,
    order_status: OrderStatus | None = None,
    payment_status: PaymentStatus | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> OrderFilters:
    return OrderFilters(
        page=page,
        limit=limit,
        user_id=user_id,
        order_status=order_status,
        payment_status=payment_status,
        start_date=start_date,
        end_date=end_date,
    )


@order_router.post("", status_code=201, response_model=PaymentLinkResponse)
def create_order(
    body: CreateOrderRequest,
    user: User = Depends(current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
) -> PaymentLinkResponse:
    """Turn the caller's cart into a pending order and return the payment page URL."""
    result = engine.create_order(user.id, body.shipping_address.model_dump(), body.payment_method)
    return PaymentLinkResponse(**result)


@order_router.get("/payment-status/{reference}", response_model=PaymentStatusResponse)
def get_payment_status(reference: str, engine: OrderLifecycleEngine = Depends(get_engine)) -> PaymentStatusResponse:
    return PaymentStatusResponse(**engine.get_payment_status(reference))


@order_router.get("/user", response_model=OrderListResponse)
def get_user_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    return engine.get_user_orders(user.id, page=page, limit=limit)


@order_router.get("/user/last-address", response_model=ShippingAddress)
def get_last_shipping_address(user: User = Depends(current_user), engine: OrderLifecycleEngine = Depends(get_engine)):
    return engine.get_last_shipping_address(user.id)


@order_router.get("/admin/all", response_model=OrderListResponse)
def get_all_orders(
    filters: OrderFilters = Depends(order_filters),
    _: User = Depends(require_admin),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    return engine.get_all_orders(
        page=filters.page,
        limit=filters.limit,
        user_id=filters.user_id,
        order_status=filters.order_status,
        payment_status=filters.payment_status,
        created_from=as_naive_utc(filters.start_date),
        created_to=as_naive_utc(filters.end_date),
    )


@order_router.get("/admin/stats", response_model=OrderStatsResponse)
def get_order_stats(_: User = Depends(require_admin), dashboard: DashboardAggregator = Depends(get_dashboard)):
    return dashboard.order_stats()


@order_router.get("/admin/dashboard", response_model=DashboardResponse)
def get_dashboard_stats(_: User = Depends(require_admin), dashboard: DashboardAggregator = Depends(get_dashboard)):
    return dashboard.dashboard_stats()


@order_router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, user: User = Depends(current_user), engine: OrderLifecycleEngine = Depends(get_engine)):
    return engine.get_order(order_id, scope_user_id=None if user.is_admin else user.id)


@order_router.post("/{order_id}/reinitialize", response_model=PaymentLinkResponse)
def reinitialize_payment(
    order_id: str,
    user: User = Depends(current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
) -> PaymentLinkResponse:
    return PaymentLinkResponse(**engine.reinitialize_payment(order_id, user.id))


@order_router.patch("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(order_id: str, user: User = Depends(current_user), engine: OrderLifecycleEngine = Depends(get_engine)):
    """Users may cancel their own orders; admins any order."""
    return engine.cancel_order(order_id, scope_user_id=None if user.is_admin else user.id)


@order_router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    _: User = Depends(require_admin),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    return engine.update_order_status(order_id, body.status)
