"""
Checkout, order history and order administration.

- POST /orders/checkout and /orders/finalize need any authenticated user.
- GET /orders/mine and /orders/mine/stats are scoped to the caller.
- GET /orders and PATCH /orders/{id}/status are admin only.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.v1.deps import get_db, get_payment_gateway, require
from storefront.core.config import settings
from storefront.core.policy import Action
from storefront.models.order import Order
from storefront.schemas.order import (
    CheckoutRequest,
    CheckoutResponse,
    FinalizeRequest,
    OrderLine,
    OrderListItem,
    OrderListResponse,
    OrderRead,
    OrderStats,
    OrderStatusUpdate,
    ShippingInfo,
)
from storefront.schemas.token import SessionClaims
from storefront.services import orders as order_service
from storefront.services.payments import PaymentGateway
from storefront.services.stats import compute_order_stats, parse_offset

router = APIRouter(prefix="/orders", tags=["orders"])
logger = logging.getLogger(__name__)


def _list_item(order: Order) -> OrderListItem:
    return OrderListItem(
        id=order.id,
        created_date=order.created_at,
        status=order.status,
        total_sum=f"{float(order.total_price):.2f}",
        products=[
            OrderLine(
                id=order.product_id,
                title=order.product_title,
                price=order.unit_price,
                quantity=order.quantity,
            )
        ],
        shipping=ShippingInfo(
            name=order.shipping_name,
            email=order.shipping_email,
            phone=order.shipping_phone,
            address=order.shipping_address,
            pincode=order.shipping_pincode,
        ),
    )


# ── Checkout ────────────────────────────────────────────────────────
@router.post("/checkout", response_model=CheckoutResponse, status_code=201)
async def checkout(
    body: CheckoutRequest,
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    claims: SessionClaims = Depends(require(Action.PLACE_ORDER)),
) -> CheckoutResponse:
    """Create the gateway order and record a pending order for it."""
    order = await order_service.start_checkout(
        db, gateway, claims, body, currency=settings.PAYMENT_CURRENCY
    )
    return CheckoutResponse(
        order_id=order.id,
        gateway_order_id=order.gateway_order_id,
        amount=order.amount_minor,
        currency=order.currency,
        key_id=gateway.key_id,
        status=order.status,
    )


@router.post("/finalize", response_model=OrderRead)
async def finalize(
    body: FinalizeRequest,
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    claims: SessionClaims = Depends(require(Action.PLACE_ORDER)),
) -> Order:
    """Confirm a payment; safe to call more than once."""
    return await order_service.finalize_order(db, gateway, claims, body)


# ── Customer views ──────────────────────────────────────────────────
@router.get("/mine", response_model=list[OrderRead])
async def my_orders(
    db: AsyncSession = Depends(get_db),
    claims: SessionClaims = Depends(require(Action.PLACE_ORDER)),
) -> list[Order]:
    result = await db.execute(
        select(Order)
        .where(Order.user_id == claims.identifier)
        .order_by(Order.created_at.desc())
    )
    return list(result.scalars().all())


@router.get("/mine/stats", response_model=OrderStats)
async def my_order_stats(
    db: AsyncSession = Depends(get_db),
    claims: SessionClaims = Depends(require(Action.PLACE_ORDER)),
) -> OrderStats:
    """Lifetime / this year / this month spending. Unpaid orders are skipped."""
    result = await db.execute(
        select(Order).where(Order.user_id == claims.identifier, Order.status != "pending")
    )
    return compute_order_stats(
        result.scalars().all(), parse_offset(settings.STATS_TIMEZONE_OFFSET)
    )


# ── Admin ───────────────────────────────────────────────────────────
@router.get("", response_model=OrderListResponse)
async def list_all_orders(
    db: AsyncSession = Depends(get_db),
    _admin: SessionClaims = Depends(require(Action.LIST_ALL_ORDERS)),
) -> OrderListResponse:
    result = await db.execute(select(Order).order_by(Order.created_at.desc()))
    items = [_list_item(order) for order in result.scalars().all()]
    return OrderListResponse(items=items, total=len(items))


@router.patch("/{order_id}/status", response_model=OrderRead)
async def change_order_status(
    order_id: str,
    body: OrderStatusUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: SessionClaims = Depends(require(Action.UPDATE_ORDER_STATUS)),
) -> Order:
    return await order_service.update_status(db, order_id, body.status)
