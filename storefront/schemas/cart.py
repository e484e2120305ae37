"""Pydantic schemas for the client-held cart."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CartItem(BaseModel):
    id: str = Field(..., min_length=1, max_length=64)
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=0)
    image: str = Field(default="", max_length=512)

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)


class CartItemAdd(BaseModel):
    id: str = Field(..., min_length=1, max_length=64)
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(default=1, ge=1)
    image: str = Field(default="", max_length=512)


class QuantityUpdate(BaseModel):
    quantity: int


class CartRead(BaseModel):
    items: list[CartItem]
    item_count: int
    total: float
