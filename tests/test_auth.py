"""Sign-up, login, logout and profile endpoints."""

import pytest
from httpx import AsyncClient

from storefront.services.session import ACCESS_COOKIE, DISPLAY_COOKIES, REFRESH_COOKIE

from conftest import auth_headers


def _set_cookies(resp) -> dict[str, str]:
    cookies = {}
    for header in resp.headers.get_list("set-cookie"):
        name = header.split("=", 1)[0]
        cookies[name] = header
    return cookies


@pytest.mark.asyncio
async def test_signup_creates_account_and_session(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/auth/signup", json={
        "email": "  New.Person@Example.com ",
        "password": "password123",
        "name": "New Person",
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["user"]["email"] == "new.person@example.com"
    assert body["user"]["role"] == "user"
    assert body["access_token"]

    cookies = _set_cookies(resp)
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        assert "HttpOnly" in cookies[name]
        assert "SameSite=strict" in cookies[name]
    for name in DISPLAY_COOKIES:
        assert "HttpOnly" not in cookies[name]


@pytest.mark.asyncio
async def test_signup_as_seller(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/auth/signup", json={
        "email": "shop@example.com", "password": "password123", "name": "Shop", "role": "seller",
    })
    assert resp.status_code == 201
    assert resp.json()["user"]["role"] == "seller"


@pytest.mark.asyncio
async def test_signup_cannot_self_promote_to_admin(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/auth/signup", json={
        "email": "sneaky@example.com", "password": "password123", "name": "S", "role": "admin",
    })
    assert resp.status_code == 422
    assert resp.json()["kind"] == "validation"


@pytest.mark.asyncio
async def test_signup_duplicate_email_conflicts(async_client: AsyncClient, customer):
    resp = await async_client.post("/api/v1/auth/signup", json={
        "email": customer.email.upper(), "password": "password123", "name": "Dup",
    })
    assert resp.status_code == 409
    body = resp.json()
    assert body == {"success": False, "kind": "conflict", "message": "User already exists"}


@pytest.mark.asyncio
async def test_signup_short_password_rejected(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/auth/signup", json={
        "email": "short@example.com", "password": "short", "name": "Short",
    })
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_login_success(async_client: AsyncClient, customer):
    resp = await async_client.post(
        "/api/v1/auth/login",
        data={"username": customer.email, "password": "password123"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Login successful"
    assert body["token_type"] == "bearer"
    assert body["user"]["identifier"] == customer.id
    assert ACCESS_COOKIE in _set_cookies(resp)


@pytest.mark.asyncio
async def test_login_failures_are_indistinguishable(async_client: AsyncClient, customer):
    wrong_password = await async_client.post(
        "/api/v1/auth/login", data={"username": customer.email, "password": "wrong-password"}
    )
    unknown_email = await async_client.post(
        "/api/v1/auth/login", data={"username": "ghost@example.com", "password": "password123"}
    )
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json()["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_logout_clears_cookies(async_client: AsyncClient, customer):
    resp = await async_client.post("/api/v1/auth/logout", headers=auth_headers(customer))
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Logout successful"}
    cookies = _set_cookies(resp)
    for name in (ACCESS_COOKIE, REFRESH_COOKIE, *DISPLAY_COOKIES):
        assert "Max-Age=0" in cookies[name]


@pytest.mark.asyncio
async def test_me_requires_session(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/auth/me")
    assert resp.status_code == 401
    assert resp.json()["kind"] == "unauthenticated"


@pytest.mark.asyncio
async def test_me_returns_profile(async_client: AsyncClient, seller):
    resp = await async_client.get("/api/v1/auth/me", headers=auth_headers(seller))
    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == seller.id
    assert body["role"] == "seller"
    assert "hashed_password" not in body


@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "db": True}
