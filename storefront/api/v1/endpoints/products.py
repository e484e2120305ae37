"""
Catalog endpoints — public browsing, seller/admin product management, reviews.

- GET browsing endpoints are public.
- Create / edit / delete need the seller or admin role; edits and deletes
  additionally need ownership unless the caller is an admin. A missing
  product is reported as 404 before ownership is looked at.
- Whole-catalog and per-seller listings are admin only.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy import delete as sa_delete
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.v1.deps import get_db, require
from storefront.core.policy import Action, Role, ensure_owner, owner_scope
from storefront.models.product import Product, Review
from storefront.models.user import User
from storefront.schemas.common import ActionResult
from storefront.schemas.product import (
    ProductCard,
    ProductRead,
    ReviewCreate,
    ReviewRead,
    ReviewResult,
    SellerProductRead,
)
from storefront.schemas.token import SessionClaims
from storefront.schemas.user import UserSummary
from storefront.services.catalog import (
    decode_image,
    encode_image,
    get_product_or_404,
    resolve_seller,
)
from storefront.services.reviews import add_review

router = APIRouter(tags=["products"])
logger = logging.getLogger(__name__)


def _like(term: str) -> str:
    # Escape SQL LIKE metacharacters to prevent wildcard injection
    safe = term.replace("\\", "\\\\").replace("%", r"\%").replace("_", r"\_")
    return f"%{safe}%"


def _with_seller(rows) -> list[SellerProductRead]:
    return [
        SellerProductRead(
            **ProductRead.model_validate(product).model_dump(),
            seller=UserSummary.model_validate(seller),
        )
        for product, seller in rows
    ]


def _seller_listing(where=None):
    query = (
        select(Product, User)
        .join(User, Product.seller_id == User.id)
        .order_by(Product.created_at.desc())
    )
    if where is not None:
        query = query.where(where)
    return query


# ── Public catalog ──────────────────────────────────────────────────
@router.get("/products", response_model=list[ProductCard])
async def list_products(
    category: str | None = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
) -> list[Product]:
    query = select(Product).order_by(Product.created_at.desc()).offset(skip).limit(limit)
    if category:
        query = query.where(Product.category == category)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.get("/products/search", response_model=list[ProductCard])
async def search_products(
    q: str = Query(..., min_length=1, max_length=100),
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
) -> list[Product]:
    """Case-insensitive match on title or description."""
    pattern = _like(q.strip())
    result = await db.execute(
        select(Product)
        .where(
            or_(
                Product.title.ilike(pattern, escape="\\"),
                Product.description.ilike(pattern, escape="\\"),
            )
        )
        .order_by(Product.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


# ── Seller / admin listings ─────────────────────────────────────────
@router.get("/products/mine", response_model=list[SellerProductRead])
async def list_own_products(
    db: AsyncSession = Depends(get_db),
    claims: SessionClaims = Depends(require(Action.LIST_OWN_PRODUCTS)),
) -> list[SellerProductRead]:
    """Sellers see their own products; admins see every product."""
    owner = owner_scope(claims)
    where = Product.seller_id == owner if owner is not None else None
    result = await db.execute(_seller_listing(where))
    return _with_seller(result.all())


@router.get("/products/all", response_model=list[SellerProductRead])
async def list_all_products(
    db: AsyncSession = Depends(get_db),
    _admin: SessionClaims = Depends(require(Action.LIST_ALL_PRODUCTS)),
) -> list[SellerProductRead]:
    result = await db.execute(_seller_listing())
    return _with_seller(result.all())


@router.get("/sellers", response_model=list[UserSummary])
async def list_sellers(
    db: AsyncSession = Depends(get_db),
    _admin: SessionClaims = Depends(require(Action.LIST_SELLERS)),
) -> list[User]:
    result = await db.execute(
        select(User).where(User.role == Role.SELLER.value).order_by(User.name)
    )
    return list(result.scalars().all())


@router.get("/sellers/{seller_id}/products", response_model=list[SellerProductRead])
async def list_seller_products(
    seller_id: str,
    db: AsyncSession = Depends(get_db),
    _admin: SessionClaims = Depends(require(Action.LIST_ALL_PRODUCTS)),
) -> list[SellerProductRead]:
    result = await db.execute(_seller_listing(Product.seller_id == seller_id))
    return _with_seller(result.all())


# ── Create / edit / delete ──────────────────────────────────────────
@router.post("/products", response_model=ProductRead, status_code=201)
async def create_product(
    title: str = Form(..., min_length=1, max_length=300),
    price: float = Form(..., ge=0),
    description: str = Form(""),
    category: str = Form(..., min_length=1, max_length=100),
    image: UploadFile = File(...),
    seller_id: str | None = Form(None),
    db: AsyncSession = Depends(get_db),
    claims: SessionClaims = Depends(require(Action.CREATE_PRODUCT)),
) -> Product:
    """Sellers always own what they create; admins may assign any seller."""
    owner_id = claims.identifier
    if claims.role is Role.ADMIN and seller_id:
        owner_id = seller_id
    await resolve_seller(db, owner_id)

    product = Product(
        title=title.strip(),
        price=price,
        description=description.strip(),
        category=category.strip(),
        image=await encode_image(image),
        seller_id=owner_id,
    )
    db.add(product)
    await db.commit()
    await db.refresh(product)
    logger.info("Created product %s (%s) for seller %s", product.id, product.title, owner_id)
    return product


@router.put("/products/{product_id}", response_model=ProductRead)
async def edit_product(
    product_id: str,
    title: str = Form(..., min_length=1, max_length=300),
    price: float = Form(..., ge=0),
    description: str = Form(""),
    category: str = Form(..., min_length=1, max_length=100),
    image: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
    claims: SessionClaims = Depends(require(Action.EDIT_PRODUCT)),
) -> Product:
    product = await get_product_or_404(db, product_id)
    ensure_owner(claims, product.seller_id)

    product.title = title.strip()
    product.price = price
    product.description = description.strip()
    product.category = category.strip()
    if image is not None and image.filename:
        product.image = await encode_image(image)

    await db.commit()
    await db.refresh(product)
    logger.info("Updated product %s", product_id)
    return product


@router.delete("/products/{product_id}", response_model=ActionResult)
async def delete_product(
    product_id: str,
    db: AsyncSession = Depends(get_db),
    claims: SessionClaims = Depends(require(Action.DELETE_PRODUCT)),
) -> ActionResult:
    product = await get_product_or_404(db, product_id)
    ensure_owner(claims, product.seller_id)

    await db.execute(sa_delete(Review).where(Review.product_id == product_id))
    await db.delete(product)
    await db.commit()
    logger.info("Deleted product %s (%s)", product_id, product.title)
    return ActionResult(message=f"Product '{product.title}' deleted")


# ── Single product ──────────────────────────────────────────────────
@router.get("/products/{product_id}", response_model=ProductRead)
async def get_product(
    product_id: str,
    db: AsyncSession = Depends(get_db),
) -> Product:
    return await get_product_or_404(db, product_id)


@router.get("/products/{product_id}/image")
async def get_product_image(
    product_id: str,
    db: AsyncSession = Depends(get_db),
) -> Response:
    product = await get_product_or_404(db, product_id)
    mime, data = decode_image(product.image)
    return Response(
        content=data,
        media_type=mime,
        headers={"Cache-Control": "public, max-age=3600"},
    )


@router.get("/products/{product_id}/similar", response_model=list[ProductCard])
async def similar_products(
    product_id: str,
    limit: int = Query(default=6, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
) -> list[Product]:
    """Same category, or sharing a title keyword. Unknown ids yield ``[]``."""
    result = await db.execute(select(Product).where(Product.id == product_id))
    current = result.scalar_one_or_none()
    if current is None:
        return []

    keywords = [w for w in current.title.split() if len(w) > 1]
    conditions = [Product.category == current.category]
    conditions += [Product.title.ilike(_like(w), escape="\\") for w in keywords]
    result = await db.execute(
        select(Product)
        .where(Product.id != current.id, or_(*conditions))
        .order_by(Product.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


# ── Reviews ─────────────────────────────────────────────────────────
@router.post("/products/{product_id}/reviews", response_model=ReviewResult, status_code=201)
async def create_review(
    product_id: str,
    body: ReviewCreate,
    db: AsyncSession = Depends(get_db),
    claims: SessionClaims = Depends(require(Action.REVIEW_PRODUCT)),
) -> ReviewResult:
    review_count, average_rating = await add_review(
        db, product_id, claims.identifier, body.rating, body.comment
    )
    return ReviewResult(
        message="Review added successfully",
        review_count=review_count,
        average_rating=average_rating,
    )


@router.get("/products/{product_id}/reviews", response_model=list[ReviewRead])
async def list_reviews(
    product_id: str,
    db: AsyncSession = Depends(get_db),
) -> list[Review]:
    await get_product_or_404(db, product_id)
    result = await db.execute(
        select(Review).where(Review.product_id == product_id).order_by(Review.created_at.desc())
    )
    return list(result.scalars().all())
