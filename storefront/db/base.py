"""
Declarative base shared by every ORM model.
"""

from __future__ import annotations

import uuid

from sqlalchemy.orm import DeclarativeBase


def new_id() -> str:
    """Canonical identifier for every entity: 32-char hex string."""
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    pass
