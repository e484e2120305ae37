"""
Cart endpoints — the cart lives in a browser cookie, never in the database.

Each call loads the cart from the request cookie, applies one change and
writes the result back onto the response.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from storefront.schemas.cart import CartItem, CartItemAdd, CartRead, QuantityUpdate
from storefront.services.cart import CookieCartStorage

router = APIRouter(prefix="/cart", tags=["cart"])


def get_cart_storage(request: Request, response: Response) -> CookieCartStorage:
    return CookieCartStorage(request, response)


@router.get("", response_model=CartRead)
async def read_cart(storage: CookieCartStorage = Depends(get_cart_storage)) -> CartRead:
    return storage.load().to_read()


@router.post("/items", response_model=CartRead)
async def add_item(
    body: CartItemAdd,
    storage: CookieCartStorage = Depends(get_cart_storage),
) -> CartRead:
    cart = storage.load()
    cart.add_to_cart(CartItem(**body.model_dump()))
    storage.save(cart)
    return cart.to_read()


@router.patch("/items/{product_id}", response_model=CartRead)
async def update_item_quantity(
    product_id: str,
    body: QuantityUpdate,
    storage: CookieCartStorage = Depends(get_cart_storage),
) -> CartRead:
    cart = storage.load()
    cart.update_quantity(product_id, body.quantity)
    storage.save(cart)
    return cart.to_read()


@router.delete("/items/{product_id}", response_model=CartRead)
async def remove_item(
    product_id: str,
    storage: CookieCartStorage = Depends(get_cart_storage),
) -> CartRead:
    cart = storage.load()
    cart.remove_item(product_id)
    storage.save(cart)
    return cart.to_read()


@router.delete("", response_model=CartRead)
async def clear_cart(storage: CookieCartStorage = Depends(get_cart_storage)) -> CartRead:
    cart = storage.load()
    cart.clear()
    storage.save(cart)
    return cart.to_read()
