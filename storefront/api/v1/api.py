"""
V1 API router aggregator — wires all endpoint modules together.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.v1.deps import get_db
from storefront.api.v1.endpoints import admin, auth, cart, orders, products
from storefront.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

api_router = APIRouter()

# Auth (sign-up, login, logout, session)
api_router.include_router(auth.router)

# Catalog, seller back office, reviews
api_router.include_router(products.router)

# Client-held cart
api_router.include_router(cart.router)

# Checkout, order history, order admin
api_router.include_router(orders.router)

# Users & dashboard stats
api_router.include_router(admin.router)


@api_router.get("/health", response_model=HealthResponse, tags=["health"])
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Public health check — data store connectivity."""
    try:
        await db.execute(select(1))
    except SQLAlchemyError as e:
        logger.error("Health check DB failure: %s", e)
        return HealthResponse(status="degraded", db=False)
    return HealthResponse(status="ok", db=True)
