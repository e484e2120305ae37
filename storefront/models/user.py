"""
User model — credentials & role-based access control.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String

from storefront.db.base import Base, new_id


class User(Base):
    __tablename__ = "users"

    id: str = Column(String(32), primary_key=True, default=new_id)  # type: ignore[assignment]
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    hashed_password: str = Column(String(128), nullable=False)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    role: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default="user",
        server_default="user",
        index=True,
    )  # user | seller | admin
    avatar: str = Column(String(2048), nullable=False, default="", server_default="")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
