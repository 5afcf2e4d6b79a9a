"""Pydantic request/response schemas for the Ordering API.

These are external contracts, kept separate from the SQLAlchemy models.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from ordering.order.order import OrderStatus, PaymentStatus


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingAddress(BaseModel):
    model_config = {"str_strip_whitespace": True}

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    address: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    country: str = Field(min_length=1, max_length=100)
    zip_code: str = Field(min_length=1, max_length=20)
    phone: str = Field(min_length=1, max_length=30)


class PaginationSchema(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    has_next_page: bool
    has_previous_page: bool
    limit: int


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


class UpdateCartQuantityRequest(BaseModel):
    quantity: int = Field(ge=0)


class CartItemResponse(BaseModel):
    model_config = {"from_attributes": True}

    product_id: str
    quantity: int
    unit_price: float


class CartResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    user_id: str
    items: list[CartItemResponse]
    total_amount: float
    updated_at: datetime


class CartCountResponse(BaseModel):
    count: int


class CartValidationResponse(BaseModel):
    is_valid: bool
    errors: list[str]


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    shipping_address: ShippingAddress
    payment_method: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_address": {
                        "first_name": "Ada",
                        "last_name": "Obi",
                        "address": "12 Marina Road",
                        "city": "Lagos",
                        "state": "Lagos",
                        "country": "Nigeria",
                        "zip_code": "101001",
                        "phone": "+2348012345678",
                    },
                    "payment_method": "paystack",
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus


class OrderFilters(BaseModel):
    page: int = Field(ge=1, default=1)
    limit: int = Field(ge=1, le=100, default=10)
    user_id: str | None = None
    order_status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class OrderItemResponse(BaseModel):
    model_config = {"from_attributes": True}

    product_id: str
    name: str
    quantity: int
    price: float


class OrderResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    user_id: str
    items: list[OrderItemResponse]
    total_amount: float
    shipping_address: ShippingAddress
    payment_method: str
    order_status: str
    payment_status: str
    payment_reference: str
    created_at: datetime
    updated_at: datetime


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    pagination: PaginationSchema


class PaymentLinkResponse(BaseModel):
    payment_url: str
    order_id: str
    reference: str


class PaymentStatusResponse(BaseModel):
    reference: str
    order_id: str
    payment_status: str
    order_status: str
    is_paid: bool
    is_failed: bool


# ---------------------------------------------------------------------------
# Admin reporting
# ---------------------------------------------------------------------------
class MetricSchema(BaseModel):
    total: int | float
    current_month: int | float
    previous_month: int | float
    percentage_change: float
    change_type: str


class WindowSchema(BaseModel):
    start: datetime
    end: datetime


class PeriodSchema(BaseModel):
    current_month: WindowSchema
    previous_month: WindowSchema


class DashboardResponse(BaseModel):
    revenue: MetricSchema
    orders: MetricSchema
    customers: MetricSchema
    products: MetricSchema
    period: PeriodSchema


class OrderStatsResponse(BaseModel):
    total_orders: int
    pending: int
    processing: int
    shipped: int
    delivered: int
    cancelled: int
