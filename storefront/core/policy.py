"""
Role-based authorization policy.

One table maps every guarded action to the roles allowed to attempt it.
Ownership of an individual resource is a second, separate check that only
runs once the resource is known to exist.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from typing import TYPE_CHECKING

from storefront.core.exceptions import Forbidden, Unauthenticated

if TYPE_CHECKING:
    from storefront.schemas.token import SessionClaims


class Role(str, enum.Enum):
    USER = "user"
    SELLER = "seller"
    ADMIN = "admin"


class Action(str, enum.Enum):
    CREATE_PRODUCT = "product:create"
    EDIT_PRODUCT = "product:edit"
    DELETE_PRODUCT = "product:delete"
    LIST_OWN_PRODUCTS = "product:list-own"
    LIST_ALL_PRODUCTS = "product:list-all"
    LIST_SELLERS = "seller:list"
    LIST_USERS = "user:list"
    MANAGE_USERS = "user:manage"
    VIEW_ADMIN_STATS = "admin:stats"
    LIST_ALL_ORDERS = "order:list-all"
    UPDATE_ORDER_STATUS = "order:update-status"
    PLACE_ORDER = "order:place"
    REVIEW_PRODUCT = "product:review"


_STAFF = frozenset({Role.SELLER, Role.ADMIN})
_ADMIN = frozenset({Role.ADMIN})
_ANY = frozenset(Role)

POLICY: dict[Action, frozenset[Role]] = {
    Action.CREATE_PRODUCT: _STAFF,
    Action.EDIT_PRODUCT: _STAFF,
    Action.DELETE_PRODUCT: _STAFF,
    Action.LIST_OWN_PRODUCTS: _STAFF,
    Action.LIST_ALL_PRODUCTS: _ADMIN,
    Action.LIST_SELLERS: _ADMIN,
    Action.LIST_USERS: _ADMIN,
    Action.MANAGE_USERS: _ADMIN,
    Action.VIEW_ADMIN_STATS: _ADMIN,
    Action.LIST_ALL_ORDERS: _ADMIN,
    Action.UPDATE_ORDER_STATUS: _ADMIN,
    Action.PLACE_ORDER: _ANY,
    Action.REVIEW_PRODUCT: _ANY,
}


def authorize(claims: SessionClaims | None, allowed: Iterable[Role]) -> None:
    """Raise unless *claims* is a session whose role is in *allowed*."""
    if claims is None:
        raise Unauthenticated()
    if claims.role not in frozenset(allowed):
        raise Forbidden()


def check(claims: SessionClaims | None, action: Action) -> None:
    authorize(claims, POLICY[action])


def ensure_owner(claims: SessionClaims, owner_id: str | None) -> None:
    """Admins may touch anything; everyone else only what they own."""
    if claims.role is Role.ADMIN:
        return
    if owner_id is None or owner_id != claims.identifier:
        raise Forbidden("You don't own this resource")


def owner_scope(claims: SessionClaims) -> str | None:
    """Owner id to filter listings by, or ``None`` for unrestricted."""
    return None if claims.role is Role.ADMIN else claims.identifier
