"""
Client-held shopping cart.

:class:`Cart` is a plain state object; it knows nothing about where it is
stored. :class:`CartStorage` turns it into text and back, and
:class:`CookieCartStorage` keeps that text in a browser cookie, so the
server never persists carts.
"""

from __future__ import annotations

import base64
import json
import logging

from pydantic import TypeAdapter, ValidationError
from starlette.requests import Request

from storefront.core.config import settings
from storefront.core.exceptions import ValidationFailed
from storefront.schemas.cart import CartItem, CartRead
from storefront.services.session import CookieJar

logger = logging.getLogger(__name__)

CART_COOKIE = "cart"
MAX_COOKIE_BYTES = 3800

_items_adapter = TypeAdapter(list[CartItem])


class Cart:
    def __init__(self, items: list[CartItem] | None = None) -> None:
        self.items: list[CartItem] = list(items or [])

    def _index(self, product_id: str) -> int | None:
        for i, item in enumerate(self.items):
            if item.id == product_id:
                return i
        return None

    def add_to_cart(self, item: CartItem) -> None:
        """Append *item*, or bump the quantity of the line with the same id."""
        i = self._index(item.id)
        if i is None:
            self.items.append(item)
            return
        existing = self.items[i]
        self.items[i] = existing.model_copy(
            update={"quantity": existing.quantity + item.quantity}
        )

    def update_quantity(self, product_id: str, quantity: int) -> None:
        # Zero keeps the line; only remove_item drops it.
        i = self._index(product_id)
        if i is not None:
            self.items[i] = self.items[i].model_copy(update={"quantity": max(0, quantity)})

    def remove_item(self, product_id: str) -> None:
        self.items = [item for item in self.items if item.id != product_id]

    def clear(self) -> None:
        self.items = []

    @property
    def total(self) -> float:
        return round(sum(item.line_total for item in self.items), 2)

    def to_read(self) -> CartRead:
        return CartRead(items=list(self.items), item_count=len(self.items), total=self.total)


class CartStorage:
    """Serialise / deserialise a cart at the persistence boundary."""

    @staticmethod
    def dumps(cart: Cart) -> str:
        return json.dumps(
            [item.model_dump() for item in cart.items], separators=(",", ":")
        )

    @staticmethod
    def loads(raw: str | None) -> Cart:
        if not raw:
            return Cart()
        try:
            return Cart(_items_adapter.validate_json(raw))
        except ValidationError:
            logger.warning("Discarding malformed cart payload")
            return Cart()


class CookieCartStorage(CartStorage):
    def __init__(self, request: Request, jar: CookieJar) -> None:
        self.request = request
        self.jar = jar

    def load(self) -> Cart:
        encoded = self.request.cookies.get(CART_COOKIE)
        if not encoded:
            return Cart()
        try:
            padded = encoded + "=" * (-len(encoded) % 4)
            raw = base64.urlsafe_b64decode(padded.encode()).decode()
        except ValueError:
            logger.warning("Discarding undecodable cart cookie")
            return Cart()
        return self.loads(raw)

    def save(self, cart: Cart) -> None:
        raw = base64.urlsafe_b64encode(self.dumps(cart).encode()).decode().rstrip("=")
        if len(raw) > MAX_COOKIE_BYTES:
            raise ValidationFailed("Cart is too large")
        self.jar.set_cookie(
            key=CART_COOKIE,
            value=raw,
            max_age=30 * 24 * 60 * 60,
            path="/",
            secure=settings.COOKIE_SECURE,
            httponly=False,
            samesite="lax",
        )
