"""Client-held cart: state operations and the cookie-backed endpoints."""

import base64
import json

import pytest
from httpx import AsyncClient

from storefront.schemas.cart import CartItem
from storefront.services.cart import CART_COOKIE, Cart, CartStorage


def _item(id: str = "p1", quantity: int = 1, price: float = 10.0) -> CartItem:
    return CartItem(id=id, name=f"Product {id}", price=price, quantity=quantity)


# ── Cart state ──────────────────────────────────────────────────────
def test_add_merges_lines_with_same_id():
    cart = Cart()
    cart.add_to_cart(_item("p1", 2))
    cart.add_to_cart(_item("p2", 1))
    cart.add_to_cart(_item("p1", 3))
    assert [i.id for i in cart.items] == ["p1", "p2"]
    assert cart.items[0].quantity == 5


def test_update_quantity_clamps_and_keeps_line():
    cart = Cart([_item("p1", 4)])
    cart.update_quantity("p1", -3)
    assert len(cart.items) == 1
    assert cart.items[0].quantity == 0


def test_update_quantity_of_unknown_line_is_noop():
    cart = Cart([_item("p1", 4)])
    cart.update_quantity("nope", 9)
    assert cart.items == [_item("p1", 4)]


def test_remove_item_drops_every_matching_line():
    cart = Cart([_item("p1"), _item("p2")])
    cart.remove_item("p1")
    assert [i.id for i in cart.items] == ["p2"]


def test_total_and_clear():
    cart = Cart([_item("p1", 2, 10.25), _item("p2", 1, 5.5)])
    assert cart.total == 26.0
    cart.clear()
    assert cart.items == []
    assert cart.total == 0


def test_storage_roundtrip_preserves_order():
    cart = Cart([_item("b", 1), _item("a", 2)])
    restored = CartStorage.loads(CartStorage.dumps(cart))
    assert restored.items == cart.items


@pytest.mark.parametrize(
    "raw",
    ["", None, "not json", '{"id": "x"}', '[{"id": "x"}]', '[{"id":"x","name":"n","price":-1,"quantity":1}]'],
)
def test_malformed_payload_loads_as_empty_cart(raw):
    assert CartStorage.loads(raw).items == []


# ── Endpoints ───────────────────────────────────────────────────────
def _cart_cookie(resp) -> str:
    for header in resp.headers.get_list("set-cookie"):
        if header.startswith(f"{CART_COOKIE}="):
            return header.split(";", 1)[0].split("=", 1)[1]
    raise AssertionError("cart cookie not set")


def _encode(items: list[dict]) -> str:
    return base64.urlsafe_b64encode(json.dumps(items).encode()).decode().rstrip("=")


@pytest.mark.asyncio
async def test_empty_cart(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/cart")
    assert resp.status_code == 200
    assert resp.json() == {"items": [], "item_count": 0, "total": 0.0}


@pytest.mark.asyncio
async def test_add_then_update_then_remove(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/v1/cart/items", json={"id": "p1", "name": "Shirt", "price": 499.0, "quantity": 2}
    )
    assert resp.status_code == 200
    assert resp.json()["total"] == 998.0
    cookie = _cart_cookie(resp)

    resp = await async_client.post(
        "/api/v1/cart/items",
        json={"id": "p1", "name": "Shirt", "price": 499.0},
        headers={"Cookie": f"{CART_COOKIE}={cookie}"},
    )
    body = resp.json()
    assert body["item_count"] == 1
    assert body["items"][0]["quantity"] == 3
    cookie = _cart_cookie(resp)

    resp = await async_client.patch(
        "/api/v1/cart/items/p1",
        json={"quantity": 0},
        headers={"Cookie": f"{CART_COOKIE}={cookie}"},
    )
    body = resp.json()
    assert body["item_count"] == 1
    assert body["items"][0]["quantity"] == 0
    assert body["total"] == 0.0
    cookie = _cart_cookie(resp)

    resp = await async_client.delete(
        "/api/v1/cart/items/p1", headers={"Cookie": f"{CART_COOKIE}={cookie}"}
    )
    assert resp.json()["items"] == []


@pytest.mark.asyncio
async def test_cart_cookie_is_decoded(async_client: AsyncClient):
    cookie = _encode([
        {"id": "p1", "name": "A", "price": 1.5, "quantity": 2, "image": ""},
        {"id": "p2", "name": "B", "price": 3.0, "quantity": 1, "image": ""},
    ])
    resp = await async_client.get("/api/v1/cart", headers={"Cookie": f"{CART_COOKIE}={cookie}"})
    body = resp.json()
    assert [i["id"] for i in body["items"]] == ["p1", "p2"]
    assert body["total"] == 6.0


@pytest.mark.asyncio
async def test_garbage_cookie_reads_as_empty(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/cart", headers={"Cookie": f"{CART_COOKIE}=%%%not-base64"})
    assert resp.status_code == 200
    assert resp.json()["items"] == []


@pytest.mark.asyncio
async def test_clear_cart(async_client: AsyncClient):
    cookie = _encode([{"id": "p1", "name": "A", "price": 1.0, "quantity": 1, "image": ""}])
    resp = await async_client.delete("/api/v1/cart", headers={"Cookie": f"{CART_COOKIE}={cookie}"})
    assert resp.json() == {"items": [], "item_count": 0, "total": 0.0}


@pytest.mark.asyncio
async def test_add_rejects_non_positive_quantity(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/v1/cart/items", json={"id": "p1", "name": "Shirt", "price": 1.0, "quantity": 0}
    )
    assert resp.status_code == 422
    assert resp.json()["kind"] == "validation"


@pytest.mark.asyncio
async def test_oversized_cart_rejected(async_client: AsyncClient):
    items = [
        {"id": f"product-{i:04d}", "name": "x" * 40, "price": 1.0, "quantity": 1, "image": ""}
        for i in range(45)
    ]
    cookie = _encode(items)
    resp = await async_client.post(
        "/api/v1/cart/items",
        json={"id": "one-more", "name": "y" * 40, "price": 1.0},
        headers={"Cookie": f"{CART_COOKIE}={cookie}"},
    )
    assert resp.status_code == 422
    assert resp.json()["message"] == "Cart is too large"
