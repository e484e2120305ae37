"""
JWT token issuing / verification and password hashing (bcrypt).

Access and refresh tokens are signed with two different secrets, so a
leaked access secret cannot mint refresh tokens and vice versa.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Literal

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError

from storefront.core.config import settings
from storefront.schemas.token import SessionClaims

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

TokenKind = Literal["access", "refresh"]


# ── Passwords ───────────────────────────────────────────────────────
def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


# ── JWT tokens ──────────────────────────────────────────────────────
class InvalidToken(Exception):
    """Token is expired, tampered with, malformed, or of the wrong kind.

    Deliberately carries a single message for every cause.
    """

    def __init__(self) -> None:
        super().__init__("Invalid or expired token")


class TokenIssuer:
    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
    ) -> None:
        self._secrets: dict[str, str] = {"access": access_secret, "refresh": refresh_secret}
        self._ttls: dict[str, timedelta] = {"access": access_ttl, "refresh": refresh_ttl}
        self._algorithm = algorithm

    def _issue(self, claims: SessionClaims, kind: TokenKind) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": claims.identifier,
            "name": claims.display_name,
            "role": claims.role.value,
            "email": claims.email,
            "avatar": claims.avatar,
            "type": kind,
            "iat": now,
            "exp": now + self._ttls[kind],
        }
        return jwt.encode(payload, self._secrets[kind], algorithm=self._algorithm)

    def issue_access(self, claims: SessionClaims) -> str:
        return self._issue(claims, "access")

    def issue_refresh(self, claims: SessionClaims) -> str:
        return self._issue(claims, "refresh")

    def verify(self, token: str, kind: TokenKind) -> SessionClaims:
        """Return the embedded claims or raise :class:`InvalidToken`."""
        try:
            payload = jwt.decode(token, self._secrets[kind], algorithms=[self._algorithm])
        except JWTError as exc:
            raise InvalidToken() from exc
        if payload.get("type") != kind:
            raise InvalidToken()
        try:
            return SessionClaims(
                identifier=payload["sub"],
                display_name=payload["name"],
                role=payload["role"],
                email=payload["email"],
                avatar=payload.get("avatar") or "",
            )
        except (KeyError, ValidationError) as exc:
            raise InvalidToken() from exc


token_issuer = TokenIssuer(
    access_secret=settings.ACCESS_SECRET,
    refresh_secret=settings.REFRESH_SECRET,
    algorithm=settings.ALGORITHM,
    access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
)
