"""
Product reviews — append a review and refresh the running average.

The aggregate columns are recomputed inside a single ``UPDATE`` whose
right-hand side reads the row's current values, so concurrent reviewers
never overwrite each other's contribution.
"""

from __future__ import annotations

import logging

from sqlalchemy import Float, Numeric, cast, func, literal_column, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.dml import Update

from storefront.core.exceptions import NotFound
from storefront.models.product import Product, Review

logger = logging.getLogger(__name__)


def append_rating(product_id: str, rating: int) -> Update:
    """``UPDATE`` folding one rating into a product's aggregates.

    The average is computed in NUMERIC; PostgreSQL has no
    ``round(double precision, integer)``.
    """
    return (
        update(Product)
        .where(Product.id == product_id)
        .values(
            review_count=Product.review_count + 1,
            rating_sum=Product.rating_sum + rating,
            average_rating=cast(
                func.round(
                    (Product.rating_sum + rating)
                    * literal_column("1.0", Numeric)
                    / (Product.review_count + 1),
                    2,
                ),
                Float,
            ),
        )
        .execution_options(synchronize_session=False)
    )


async def add_review(
    db: AsyncSession,
    product_id: str,
    user_id: str,
    rating: int,
    comment: str,
) -> tuple[int, float]:
    """Append a review; returns the product's new ``(review_count, average_rating)``."""
    result = await db.execute(append_rating(product_id, rating))
    if result.rowcount == 0:
        await db.rollback()
        raise NotFound("Product not found")

    db.add(Review(product_id=product_id, user_id=user_id, rating=rating, comment=comment))
    await db.commit()

    row = await db.execute(
        select(Product.review_count, Product.average_rating).where(Product.id == product_id)
    )
    review_count, average_rating = row.one()
    logger.info(
        "Review added to product %s (count=%d, avg=%.2f)", product_id, review_count, average_rating
    )
    return review_count, average_rating
