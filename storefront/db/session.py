"""
Async SQLAlchemy engine & session factory (asyncpg driver).
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from storefront.core.config import settings

engine_args: dict = {
    "echo": False,
    "pool_pre_ping": True,
}

if "postgresql" in settings.DATABASE_URL:
    engine_args.update(
        {
            "pool_size": 20,
            "max_overflow": 10,
            "pool_recycle": 300,
            "pool_timeout": settings.DB_TIMEOUT_SECONDS,
            "connect_args": {
                "timeout": settings.DB_TIMEOUT_SECONDS,
                "command_timeout": settings.DB_TIMEOUT_SECONDS,
            },
        }
    )
elif "sqlite" in settings.DATABASE_URL:
    engine_args["connect_args"] = {"timeout": settings.DB_TIMEOUT_SECONDS}

engine = create_async_engine(
    settings.DATABASE_URL,
    **engine_args,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
