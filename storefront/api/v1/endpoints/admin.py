"""
Admin back office — customer accounts and dashboard statistics.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.v1.deps import get_db, require
from storefront.core.exceptions import Conflict, NotFound
from storefront.core.policy import Action, Role
from storefront.models.order import Order
from storefront.models.product import Product, Review
from storefront.models.user import User
from storefront.schemas.common import ActionResult
from storefront.schemas.token import SessionClaims
from storefront.schemas.user import AdminStats, RecentUser, UserSummary, UserUpdate
from storefront.services.credentials import CredentialStore

router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger(__name__)


async def _get_user_or_404(db: AsyncSession, user_id: str) -> User:
    user = await CredentialStore(db).find_by_id(user_id)
    if user is None:
        raise NotFound("User not found")
    return user


async def _has_dependents(db: AsyncSession, user_id: str) -> bool:
    """True when products, orders or reviews still reference the user."""
    for column in (Product.seller_id, Order.user_id, Review.user_id):
        found = await db.execute(select(column).where(column == user_id).limit(1))
        if found.first() is not None:
            return True
    return False


@router.get("/users", response_model=list[UserSummary])
async def list_users(
    db: AsyncSession = Depends(get_db),
    _admin: SessionClaims = Depends(require(Action.LIST_USERS)),
) -> list[User]:
    """All customer accounts (role ``user``)."""
    result = await db.execute(
        select(User).where(User.role == Role.USER.value).order_by(User.created_at.desc())
    )
    return list(result.scalars().all())


@router.get("/users/{user_id}", response_model=UserSummary)
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    _admin: SessionClaims = Depends(require(Action.MANAGE_USERS)),
) -> User:
    return await _get_user_or_404(db, user_id)


@router.put("/users/{user_id}", response_model=UserSummary)
async def update_user(
    user_id: str,
    body: UserUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: SessionClaims = Depends(require(Action.MANAGE_USERS)),
) -> User:
    user = await _get_user_or_404(db, user_id)
    changes = body.model_dump(exclude_unset=True, exclude_none=True)

    new_email = changes.get("email")
    if new_email and new_email != user.email:
        if await CredentialStore(db).find_by_email(new_email) is not None:
            raise Conflict("Email already registered")

    for field, value in changes.items():
        setattr(user, field, value)

    await db.commit()
    await db.refresh(user)
    logger.info("Updated user %s: %s", user_id, sorted(changes))
    return user


@router.delete("/users/{user_id}", response_model=ActionResult)
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    admin: SessionClaims = Depends(require(Action.MANAGE_USERS)),
) -> ActionResult:
    if user_id == admin.identifier:
        raise Conflict("Admins cannot delete their own account")
    user = await _get_user_or_404(db, user_id)
    if await _has_dependents(db, user_id):
        raise Conflict("User still owns products, orders or reviews")
    await db.delete(user)
    await db.commit()
    logger.info("Deleted user %s (%s)", user_id, user.email)
    return ActionResult(message=f"User '{user.name}' deleted")


@router.get("/stats", response_model=AdminStats)
async def admin_stats(
    db: AsyncSession = Depends(get_db),
    _admin: SessionClaims = Depends(require(Action.VIEW_ADMIN_STATS)),
) -> AdminStats:
    counts = await db.execute(
        select(User.role, func.count(User.id))
        .where(User.role.in_([Role.USER.value, Role.ADMIN.value]))
        .group_by(User.role)
    )
    by_role = dict(counts.all())

    recent = await db.execute(
        select(User)
        .where(User.role == Role.USER.value)
        .order_by(User.created_at.desc())
        .limit(5)
    )
    return AdminStats(
        total_users=by_role.get(Role.USER.value, 0),
        total_admins=by_role.get(Role.ADMIN.value, 0),
        recent_users=[RecentUser.model_validate(u) for u in recent.scalars().all()],
    )
