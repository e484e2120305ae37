"""
Spending statistics over a user's orders.

Windows are calendar-based in an explicit, configured time zone: an order
placed at 23:30 UTC on 31 December counts towards the next year for a
``+05:30`` store.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Protocol

from storefront.schemas.order import OrderStats


class _Dated(Protocol):
    created_at: datetime
    total_price: float


def parse_offset(tz_offset: str) -> timezone:
    """``"+05:30"`` -> ``timezone(timedelta(hours=5, minutes=30))``."""
    sign = 1 if tz_offset[0] == "+" else -1
    offset_parts = tz_offset[1:].split(":")
    offset_hours = int(offset_parts[0])
    offset_mins = int(offset_parts[1]) if len(offset_parts) > 1 else 0
    return timezone(timedelta(hours=sign * offset_hours, minutes=sign * offset_mins))


def _ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def compute_order_stats(
    orders: Iterable[_Dated],
    tz: tzinfo,
    now: datetime | None = None,
) -> OrderStats:
    """Lifetime / current-year / current-month counts and totals, one pass."""
    local_now = _ensure_utc(now or datetime.now(timezone.utc)).astimezone(tz)
    lifetime_orders = yearly_orders = monthly_orders = 0
    lifetime_spent = yearly_spent = monthly_spent = 0.0

    for order in orders:
        placed = _ensure_utc(order.created_at).astimezone(tz)
        total = float(order.total_price)

        lifetime_orders += 1
        lifetime_spent += total
        if placed.year == local_now.year:
            yearly_orders += 1
            yearly_spent += total
            if placed.month == local_now.month:
                monthly_orders += 1
                monthly_spent += total

    offset = local_now.strftime("%z")
    return OrderStats(
        lifetime_orders=lifetime_orders,
        lifetime_spent=round(lifetime_spent, 2),
        yearly_orders=yearly_orders,
        yearly_spent=round(yearly_spent, 2),
        monthly_orders=monthly_orders,
        monthly_spent=round(monthly_spent, 2),
        timezone_offset=f"{offset[:3]}:{offset[3:]}",
    )
