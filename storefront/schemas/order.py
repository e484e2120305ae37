"""Pydantic schemas for checkout, orders and spending statistics."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from storefront.models.order import ORDER_STATUSES


# ── Checkout ────────────────────────────────────────────────────────
class CheckoutRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1, le=100)
    phone: str = ""
    shipping_name: str
    shipping_email: str
    shipping_phone: str
    shipping_address: str
    shipping_pincode: str

    @field_validator(
        "shipping_name",
        "shipping_email",
        "shipping_phone",
        "shipping_address",
        "shipping_pincode",
    )
    @classmethod
    def _required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please fill in all shipping details")
        return v


class CheckoutResponse(BaseModel):
    success: bool = True
    order_id: str
    gateway_order_id: str
    amount: int
    currency: str
    key_id: str
    status: str


class FinalizeRequest(BaseModel):
    payment_id: str = Field(..., min_length=1, max_length=64)
    order_id: str = Field(..., min_length=1, max_length=64)
    signature: str = Field(..., min_length=1, max_length=256)


# ── Orders ──────────────────────────────────────────────────────────
class OrderRead(BaseModel):
    id: str
    user_id: str
    product_id: str
    product_title: str
    product_image: str
    unit_price: float
    quantity: int
    total_price: float
    shipping_name: str
    shipping_email: str
    shipping_phone: str
    shipping_address: str
    shipping_pincode: str
    currency: str
    amount_minor: int
    gateway_order_id: str
    payment_id: str | None
    paid_at: datetime | None
    status: str
    created_at: datetime | None

    model_config = {"from_attributes": True}


class OrderStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def _status(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ORDER_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(ORDER_STATUSES)}")
        return v


class OrderLine(BaseModel):
    id: str
    title: str
    price: float
    quantity: int


class ShippingInfo(BaseModel):
    name: str
    email: str
    phone: str
    address: str
    pincode: str


class OrderListItem(BaseModel):
    id: str
    created_date: datetime
    status: str
    total_sum: str
    products: list[OrderLine]
    shipping: ShippingInfo


class OrderListResponse(BaseModel):
    items: list[OrderListItem]
    total: int


# ── Statistics ──────────────────────────────────────────────────────
class OrderStats(BaseModel):
    lifetime_orders: int = 0
    lifetime_spent: float = 0.0
    yearly_orders: int = 0
    yearly_spent: float = 0.0
    monthly_orders: int = 0
    monthly_spent: float = 0.0
    timezone_offset: str
