"""
Order model — one purchased product per order, denormalised at checkout.

Everything except ``status`` (and the payment fields filled in once, when
the gateway payment is confirmed) is frozen after creation.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)

from storefront.db.base import Base, new_id

ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")

# Admin-driven moves. pending -> processing only happens through a verified
# payment, never by hand.
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"cancelled"}),
    "processing": frozenset({"shipped", "cancelled"}),
    "shipped": frozenset({"delivered", "cancelled"}),
    "delivered": frozenset(),
    "cancelled": frozenset(),
}


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (Index("ix_order_user_created", "user_id", "created_at"),)

    id: str = Column(String(32), primary_key=True, default=new_id)  # type: ignore[assignment]
    user_id: str = Column(String(32), ForeignKey("users.id"), nullable=False)  # type: ignore[assignment]

    # Buyer snapshot
    user_name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    user_email: str = Column(String(320), nullable=False)  # type: ignore[assignment]
    user_phone: str = Column(String(30), nullable=False, default="")  # type: ignore[assignment]

    # Product snapshot
    product_id: str = Column(String(32), nullable=False, index=True)  # type: ignore[assignment]
    product_title: str = Column(String(300), nullable=False)  # type: ignore[assignment]
    product_image: str = Column(Text, nullable=False, default="")  # type: ignore[assignment]
    unit_price: float = Column(Numeric(12, 2, asdecimal=False), nullable=False)  # type: ignore[assignment]
    quantity: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    total_price: float = Column(Numeric(12, 2, asdecimal=False), nullable=False)  # type: ignore[assignment]

    # Shipping destination
    shipping_name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    shipping_email: str = Column(String(320), nullable=False)  # type: ignore[assignment]
    shipping_phone: str = Column(String(30), nullable=False)  # type: ignore[assignment]
    shipping_address: str = Column(String(500), nullable=False)  # type: ignore[assignment]
    shipping_pincode: str = Column(String(20), nullable=False)  # type: ignore[assignment]

    # Payment
    currency: str = Column(String(3), nullable=False)  # type: ignore[assignment]
    amount_minor: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    gateway_order_id: str = Column(String(64), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    payment_id: str | None = Column(String(64), nullable=True)  # type: ignore[assignment]
    paid_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]

    status: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default="pending",
        server_default="pending",
    )  # pending | processing | shipped | delivered | cancelled
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
