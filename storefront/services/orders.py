"""
Checkout and order lifecycle.

Checkout is split in two so that a lost browser redirect after payment can
never leave the shop without a record:

1. :func:`start_checkout` creates the gateway order and immediately stores a
   ``pending`` order keyed by the gateway's order id.
2. :func:`finalize_order` verifies the payment signature and moves that
   order to ``processing``. Calling it again with the same payment is a
   no-op that returns the stored order.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import Conflict, Forbidden, NotFound, ValidationFailed
from storefront.core.policy import Role
from storefront.models.order import ALLOWED_TRANSITIONS, Order
from storefront.models.user import User
from storefront.schemas.order import CheckoutRequest, FinalizeRequest
from storefront.schemas.token import SessionClaims
from storefront.services.catalog import get_product_or_404, product_image_url
from storefront.services.payments import PaymentGateway, to_minor_units

logger = logging.getLogger(__name__)


async def start_checkout(
    db: AsyncSession,
    gateway: PaymentGateway,
    claims: SessionClaims,
    body: CheckoutRequest,
    currency: str,
) -> Order:
    product = await get_product_or_404(db, body.product_id)

    buyer = (await db.execute(select(User).where(User.id == claims.identifier))).scalar_one_or_none()
    if buyer is None:
        raise NotFound("User not found")

    unit_price = float(product.price)
    total = round(unit_price * body.quantity, 2)
    amount = to_minor_units(total)
    if amount <= 0:
        raise ValidationFailed("Order total must be positive")

    receipt = f"receipt_{int(datetime.now(timezone.utc).timestamp() * 1000)}"
    gateway_order = await gateway.create_order(
        amount=amount,
        currency=currency,
        receipt=receipt,
        notes={
            "productId": product.id,
            "productName": product.title,
            "quantity": body.quantity,
            "shippingName": body.shipping_name,
            "shippingAddress": body.shipping_address,
        },
    )

    order = Order(
        user_id=buyer.id,
        user_name=buyer.name,
        user_email=buyer.email,
        user_phone=body.phone.strip(),
        product_id=product.id,
        product_title=product.title,
        product_image=product_image_url(product),
        unit_price=unit_price,
        quantity=body.quantity,
        total_price=total,
        shipping_name=body.shipping_name,
        shipping_email=body.shipping_email,
        shipping_phone=body.shipping_phone,
        shipping_address=body.shipping_address,
        shipping_pincode=body.shipping_pincode,
        currency=gateway_order.currency,
        amount_minor=gateway_order.amount,
        gateway_order_id=gateway_order.order_id,
        status="pending",
    )
    db.add(order)
    await db.commit()
    await db.refresh(order)
    logger.info(
        "Pending order %s created for user %s (gateway order %s)",
        order.id,
        buyer.id,
        gateway_order.order_id,
    )
    return order


async def finalize_order(
    db: AsyncSession,
    gateway: PaymentGateway,
    claims: SessionClaims,
    body: FinalizeRequest,
) -> Order:
    order = (
        await db.execute(
            select(Order).where(Order.gateway_order_id == body.order_id).with_for_update()
        )
    ).scalar_one_or_none()
    if order is None:
        raise NotFound("Order not found")
    if claims.role is not Role.ADMIN and order.user_id != claims.identifier:
        raise Forbidden("You don't own this order")

    if not gateway.verify_payment_signature(body.order_id, body.payment_id, body.signature):
        logger.warning("Payment signature mismatch for gateway order %s", body.order_id)
        raise Forbidden("Payment signature verification failed")

    if order.payment_id is not None:
        if order.payment_id == body.payment_id:
            return order
        raise Conflict("Order already paid with a different payment")
    if order.status != "pending":
        raise Conflict(f"Order is {order.status} and can no longer be paid")

    order.payment_id = body.payment_id
    order.paid_at = datetime.now(timezone.utc)
    order.status = "processing"
    await db.commit()
    await db.refresh(order)
    logger.info("Order %s paid (payment %s)", order.id, body.payment_id)
    return order


async def update_status(db: AsyncSession, order_id: str, new_status: str) -> Order:
    order = (
        await db.execute(select(Order).where(Order.id == order_id).with_for_update())
    ).scalar_one_or_none()
    if order is None:
        raise NotFound("Order not found")
    if new_status == order.status:
        return order
    if new_status not in ALLOWED_TRANSITIONS[order.status]:
        raise ValidationFailed(f"Cannot move order from {order.status} to {new_status}")

    previous = order.status
    order.status = new_status
    await db.commit()
    await db.refresh(order)
    logger.info("Order %s status %s -> %s", order.id, previous, new_status)
    return order
