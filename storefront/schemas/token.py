"""Pydantic schemas for JWT tokens and session claims."""

from __future__ import annotations

from pydantic import BaseModel

from storefront.core.policy import Role


class SessionClaims(BaseModel):
    """Identity embedded in both token kinds. Never persisted."""

    identifier: str
    display_name: str
    role: Role
    email: str
    avatar: str = ""

    model_config = {"frozen": True}


class TokenPair(BaseModel):
    access_token: str | None = None
    refresh_token: str | None = None


class AuthResponse(BaseModel):
    success: bool = True
    message: str
    access_token: str
    token_type: str = "bearer"
    user: SessionClaims
