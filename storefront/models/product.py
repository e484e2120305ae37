"""
Product & Review models — the catalog.

A product carries running review aggregates (``review_count``,
``rating_sum``, ``average_rating``) that are only ever changed by a single
SQL ``UPDATE`` in :mod:`storefront.services.reviews`.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)

from storefront.db.base import Base, new_id


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_product_price_non_negative"),
        Index("ix_product_category_created", "category", "created_at"),
    )

    id: str = Column(String(32), primary_key=True, default=new_id)  # type: ignore[assignment]
    title: str = Column(String(300), nullable=False)  # type: ignore[assignment]
    price: float = Column(Numeric(12, 2, asdecimal=False), nullable=False)  # type: ignore[assignment]
    description: str = Column(Text, nullable=False, default="")  # type: ignore[assignment]
    category: str = Column(String(100), nullable=False, index=True)  # type: ignore[assignment]
    image: str = Column(Text, nullable=False, default="")  # type: ignore[assignment]  # data: URI
    seller_id: str = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)  # type: ignore[assignment]
    review_count: int = Column(Integer, nullable=False, default=0, server_default="0")  # type: ignore[assignment]
    rating_sum: int = Column(Integer, nullable=False, default=0, server_default="0")  # type: ignore[assignment]
    average_rating: float = Column(Float, nullable=False, default=0.0, server_default="0")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
    )

    id: str = Column(String(32), primary_key=True, default=new_id)  # type: ignore[assignment]
    product_id: str = Column(  # type: ignore[assignment]
        String(32), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: str = Column(String(32), ForeignKey("users.id"), nullable=False)  # type: ignore[assignment]
    rating: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    comment: str = Column(Text, nullable=False, default="")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
