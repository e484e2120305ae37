"""
FastAPI dependencies — session resolution, policy guards and database session.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Optional

from fastapi import Depends, Request, Response
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import Unauthenticated
from storefront.core.policy import Action, check
from storefront.core.security import token_issuer
from storefront.db.session import async_session_factory
from storefront.schemas.token import SessionClaims, TokenPair
from storefront.services.payments import PaymentGateway, payment_gateway
from storefront.services.session import ACCESS_COOKIE, REFRESH_COOKIE, SessionResolver

# auto_error=False: browsers authenticate with cookies, API clients may send a header
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

session_resolver = SessionResolver(token_issuer)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── External services ───────────────────────────────────────────────
def get_payment_gateway() -> PaymentGateway:
    return payment_gateway


def get_session_resolver() -> SessionResolver:
    return session_resolver


# ── Auth dependencies ───────────────────────────────────────────────
async def get_optional_session(
    request: Request,
    response: Response,
    bearer: Optional[str] = Depends(oauth2_scheme),
    resolver: SessionResolver = Depends(get_session_resolver),
) -> SessionClaims | None:
    """Verified claims of the caller, or ``None`` for anonymous visitors.

    Priority for the access token: Authorization header > cookie. A
    reissued access token is written onto *response*.
    """
    tokens = TokenPair(
        access_token=bearer or request.cookies.get(ACCESS_COOKIE),
        refresh_token=request.cookies.get(REFRESH_COOKIE),
    )
    return resolver.resolve_session(tokens, response)


async def get_current_session(
    claims: SessionClaims | None = Depends(get_optional_session),
) -> SessionClaims:
    if claims is None:
        raise Unauthenticated()
    return claims


def require(action: Action) -> Callable[..., Awaitable[SessionClaims]]:
    """Dependency factory: resolve the session and check *action* against the policy."""

    async def _guard(
        claims: SessionClaims | None = Depends(get_optional_session),
    ) -> SessionClaims:
        check(claims, action)
        return claims  # type: ignore[return-value]

    _guard.__name__ = f"require_{action.name.lower()}"
    return _guard
