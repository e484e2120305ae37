"""Pydantic schemas for User CRUD."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator

from storefront.core.policy import Role

_SIGNUP_ROLES = {Role.USER, Role.SELLER}


def _normalise_email(v: str) -> str:
    v = v.strip().lower()
    local, _, domain = v.partition("@")
    if not local or "." not in domain:
        raise ValueError("Invalid email address")
    return v


class UserCreate(BaseModel):
    email: str
    password: str
    name: str
    role: Role = Role.USER
    avatar: str = ""

    @field_validator("role")
    @classmethod
    def _validate_role(cls, v: Role) -> Role:
        if v not in _SIGNUP_ROLES:
            raise ValueError("Role must be one of: user, seller")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _normalise_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        if len(v.encode()) > 72:
            raise ValueError("Password must not exceed 72 bytes")
        return v

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be empty")
        if len(v) > 200:
            raise ValueError("Name must not exceed 200 characters")
        return v


class UserRead(BaseModel):
    id: str
    email: str
    name: str
    role: Role
    avatar: str
    created_at: datetime | None

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    id: str
    name: str
    email: str

    model_config = {"from_attributes": True}


class RecentUser(UserSummary):
    created_at: datetime | None


class UserUpdate(BaseModel):
    name: str | None = None
    email: str | None = None

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        return _normalise_email(v) if v is not None else v

    @field_validator("name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Name must not be empty")
        return v.strip() if v is not None else v


class AdminStats(BaseModel):
    total_users: int
    total_admins: int
    recent_users: list[RecentUser]
