"""
Credential store — user lookup, password verification and sign-up.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import Conflict
from storefront.core.policy import Role
from storefront.core.security import get_password_hash, verify_password
from storefront.models.user import User
from storefront.schemas.token import SessionClaims

logger = logging.getLogger(__name__)

# Verified against when the email is unknown so both branches cost a bcrypt round.
_DUMMY_HASH = get_password_hash("storefront-timing-equaliser")


def claims_for(user: User) -> SessionClaims:
    return SessionClaims(
        identifier=user.id,
        display_name=user.name,
        role=Role(user.role),
        email=user.email,
        avatar=user.avatar or "",
    )


class CredentialStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_by_email(self, email: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: str) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    def verify_secret(user: User, candidate: str) -> bool:
        return verify_password(candidate, user.hashed_password)

    async def authenticate(self, email: str, password: str) -> User | None:
        user = await self.find_by_email(email)
        if user is None:
            verify_password(password, _DUMMY_HASH)
            return None
        if not self.verify_secret(user, password):
            return None
        return user

    async def create_user(
        self,
        email: str,
        password: str,
        name: str,
        role: Role = Role.USER,
        avatar: str = "",
    ) -> User:
        """Insert a new user; raises :class:`Conflict` if the email is taken."""
        email = email.strip().lower()
        if await self.find_by_email(email) is not None:
            raise Conflict("User already exists")

        user = User(
            email=email,
            hashed_password=get_password_hash(password),
            name=name,
            role=role.value,
            avatar=avatar,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent sign-up for the same email
            await self.db.rollback()
            raise Conflict("User already exists") from None
        await self.db.refresh(user)
        logger.info("Created %s account %s", user.role, user.email)
        return user
