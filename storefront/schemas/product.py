"""Pydantic schemas for the catalog and product reviews."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from storefront.schemas.user import UserSummary


class ProductRead(BaseModel):
    id: str
    title: str
    price: float
    description: str
    category: str
    image: str
    seller_id: str
    review_count: int
    average_rating: float
    created_at: datetime | None

    model_config = {"from_attributes": True}


class ProductCard(BaseModel):
    """Client-safe catalog entry."""

    id: str
    title: str
    description: str
    image: str
    price: float

    model_config = {"from_attributes": True}


class SellerProductRead(ProductRead):
    seller: UserSummary | None = None


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str = ""

    @field_validator("comment")
    @classmethod
    def _comment(cls, v: str) -> str:
        v = v.strip()
        if len(v) > 2000:
            raise ValueError("Comment must not exceed 2000 characters")
        return v


class ReviewRead(BaseModel):
    id: str
    product_id: str
    user_id: str
    rating: int
    comment: str
    created_at: datetime | None

    model_config = {"from_attributes": True}


class ReviewResult(BaseModel):
    success: bool = True
    message: str
    review_count: int
    average_rating: float
