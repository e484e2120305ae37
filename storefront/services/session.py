"""
Session lifecycle — issuing, resolving and clearing cookie-carried sessions.

Two signed tokens travel as HttpOnly cookies. Alongside them a handful of
readable *display* cookies let the browser render the user's name and
avatar. Those are output only: nothing in this module (or anywhere else)
reads them back, the sole identity source is a verified token.

Resolution table::

    access valid              -> claims from access token
    access bad, refresh valid -> new access token from refresh claims
    both bad / absent         -> None (anonymous)
"""

from __future__ import annotations

import logging
from typing import Protocol

from storefront.core.config import settings
from storefront.core.security import InvalidToken, TokenIssuer
from storefront.schemas.token import SessionClaims, TokenPair

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"
DISPLAY_COOKIES = ("userEmail", "userName", "userRole", "avatar", "id")


class CookieJar(Protocol):
    """The subset of :class:`starlette.responses.Response` we write through."""

    def set_cookie(
        self,
        key: str,
        value: str = "",
        max_age: int | None = None,
        *,
        path: str = "/",
        secure: bool = False,
        httponly: bool = False,
        samesite: str = "lax",
    ) -> None: ...

    def delete_cookie(
        self,
        key: str,
        path: str = "/",
        *,
        secure: bool = False,
        httponly: bool = False,
        samesite: str = "lax",
    ) -> None: ...


def _display_values(claims: SessionClaims) -> dict[str, str]:
    return {
        "userEmail": claims.email,
        "userName": claims.display_name,
        "userRole": claims.role.value,
        "avatar": claims.avatar,
        "id": claims.identifier,
    }


class SessionResolver:
    def __init__(self, issuer: TokenIssuer) -> None:
        self.issuer = issuer
        self.access_max_age = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        self.refresh_max_age = settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60

    # ── Cookie writers ──────────────────────────────────────────────
    def _set_token_cookie(self, jar: CookieJar, key: str, value: str, max_age: int) -> None:
        jar.set_cookie(
            key=key,
            value=value,
            max_age=max_age,
            path="/",
            secure=settings.COOKIE_SECURE,
            httponly=True,
            samesite=settings.COOKIE_SAMESITE,
        )

    def _set_display_cookies(self, jar: CookieJar, claims: SessionClaims, max_age: int) -> None:
        for key, value in _display_values(claims).items():
            jar.set_cookie(
                key=key,
                value=value,
                max_age=max_age,
                path="/",
                secure=settings.COOKIE_SECURE,
                httponly=False,
                samesite="lax",
            )

    # ── Public API ──────────────────────────────────────────────────
    def issue_session(self, claims: SessionClaims, jar: CookieJar) -> str:
        """Start a session (login / sign-up). Returns the access token."""
        access = self.issuer.issue_access(claims)
        refresh = self.issuer.issue_refresh(claims)
        self._set_token_cookie(jar, ACCESS_COOKIE, access, self.access_max_age)
        self._set_token_cookie(jar, REFRESH_COOKIE, refresh, self.refresh_max_age)
        self._set_display_cookies(jar, claims, self.refresh_max_age)
        return access

    def resolve_session(self, tokens: TokenPair, jar: CookieJar) -> SessionClaims | None:
        """Return the caller's verified claims, or ``None`` when anonymous.

        Never raises for missing or bad tokens.
        """
        if tokens.access_token:
            try:
                return self.issuer.verify(tokens.access_token, "access")
            except InvalidToken:
                pass

        if not tokens.refresh_token:
            return None
        try:
            claims = self.issuer.verify(tokens.refresh_token, "refresh")
        except InvalidToken:
            logger.info("Rejected refresh token; treating request as anonymous")
            return None

        access = self.issuer.issue_access(claims)
        self._set_token_cookie(jar, ACCESS_COOKIE, access, self.access_max_age)
        self._set_display_cookies(jar, claims, self.access_max_age)
        logger.info("Reissued access token for user %s", claims.identifier)
        return claims

    def clear_session(self, jar: CookieJar) -> None:
        for key in (ACCESS_COOKIE, REFRESH_COOKIE):
            jar.delete_cookie(
                key,
                path="/",
                secure=settings.COOKIE_SECURE,
                httponly=True,
                samesite=settings.COOKIE_SAMESITE,
            )
        for key in DISPLAY_COOKIES:
            jar.delete_cookie(key, path="/", secure=settings.COOKIE_SECURE, samesite="lax")
