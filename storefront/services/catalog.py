"""
Catalog helpers — product images and seller references.

Uploaded images are stored inline as ``data:<mime>;base64,<payload>`` text
and served back as raw bytes from ``/products/{id}/image``.
"""

from __future__ import annotations

import base64
import binascii

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.exceptions import NotFound, ValidationFailed
from storefront.core.policy import Role
from storefront.models.product import Product
from storefront.models.user import User

MAX_IMAGE_BYTES = 2 * 1024 * 1024
_ALLOWED_IMAGE_TYPES = {"image/png", "image/jpeg", "image/webp", "image/gif"}


async def encode_image(upload: UploadFile) -> str:
    content_type = (upload.content_type or "").lower()
    if content_type not in _ALLOWED_IMAGE_TYPES:
        raise ValidationFailed("Image must be PNG, JPEG, WebP or GIF")
    data = await upload.read()
    if not data:
        raise ValidationFailed("Image file is empty")
    if len(data) > MAX_IMAGE_BYTES:
        raise ValidationFailed("Image must not exceed 2 MB")
    return f"data:{content_type};base64,{base64.b64encode(data).decode()}"


def decode_image(data_uri: str) -> tuple[str, bytes]:
    """Split a stored data URI into ``(mime_type, raw_bytes)``."""
    header, sep, payload = data_uri.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise NotFound("Image not found")
    try:
        return header[5:-7], base64.b64decode(payload, validate=True)
    except binascii.Error:
        raise NotFound("Image not found") from None


def product_image_url(product: Product) -> str:
    if not product.image:
        return ""
    return f"{settings.API_V1_PREFIX}/products/{product.id}/image"


async def get_product_or_404(db: AsyncSession, product_id: str) -> Product:
    result = await db.execute(select(Product).where(Product.id == product_id))
    product = result.scalar_one_or_none()
    if product is None:
        raise NotFound("Product not found")
    return product


async def resolve_seller(db: AsyncSession, seller_id: str) -> User:
    """A product's owner must exist and be a seller or admin."""
    result = await db.execute(select(User).where(User.id == seller_id))
    seller = result.scalar_one_or_none()
    if seller is None:
        raise NotFound("Seller not found")
    if seller.role not in (Role.SELLER.value, Role.ADMIN.value):
        raise ValidationFailed("Products can only belong to sellers or admins")
    return seller
