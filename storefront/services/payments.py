"""
Payment gateway client (Razorpay-compatible REST API).

Only two calls are needed: create a gateway order before the customer
pays, and verify the signature the checkout widget hands back afterwards.
Every outbound request carries an explicit timeout and is attempted once.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import httpx

from storefront.core.config import settings
from storefront.core.exceptions import ExternalServiceFailure

logger = logging.getLogger(__name__)

NoteValue = str | int | float | None


@dataclass(frozen=True)
class GatewayOrder:
    order_id: str
    amount: int
    currency: str
    status: str
    receipt: str | None
    created_at: datetime


def to_minor_units(amount: float) -> int:
    """Major currency units -> integer minor units (rupees -> paise)."""
    return int(round(amount * 100))


class PaymentGateway:
    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.key_id = key_id
        self._key_secret = key_secret
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            auth=(self.key_id, self._key_secret),
            timeout=httpx.Timeout(self._timeout),
            transport=self._transport,
        )

    async def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str | None = None,
        notes: dict[str, NoteValue] | None = None,
    ) -> GatewayOrder:
        """Create a gateway order for *amount* minor units."""
        payload = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": {k: v for k, v in (notes or {}).items() if v is not None},
        }
        logger.info("Creating gateway order: %s %s (receipt %s)", amount, currency, receipt)
        try:
            async with self._client() as client:
                resp = await client.post("/orders", json=payload)
                resp.raise_for_status()
                body = resp.json()
        except httpx.TimeoutException as exc:
            logger.error("Payment gateway timed out: %s", exc)
            raise ExternalServiceFailure("Payment gateway timed out") from exc
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Payment gateway rejected order (%s): %s",
                exc.response.status_code,
                exc.response.text[:500],
            )
            raise ExternalServiceFailure("Payment gateway rejected the order") from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Payment gateway unreachable: %s", exc)
            raise ExternalServiceFailure("Payment gateway unavailable") from exc

        if not isinstance(body, dict) or not body.get("id"):
            raise ExternalServiceFailure("Order not created")

        created = body.get("created_at")
        return GatewayOrder(
            order_id=body["id"],
            amount=int(body.get("amount", amount)),
            currency=body.get("currency", currency),
            status=body.get("status", "created"),
            receipt=body.get("receipt"),
            created_at=(
                datetime.fromtimestamp(created, tz=timezone.utc)
                if isinstance(created, (int, float))
                else datetime.now(timezone.utc)
            ),
        )

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """HMAC-SHA256 of ``"{order_id}|{payment_id}"`` keyed by the API secret."""
        expected = hmac.new(
            self._key_secret.encode(),
            f"{order_id}|{payment_id}".encode(),
            hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(expected.encode(), signature.encode())


payment_gateway = PaymentGateway(
    key_id=settings.PAYMENT_KEY_ID,
    key_secret=settings.PAYMENT_KEY_SECRET,
    base_url=settings.PAYMENT_GATEWAY_URL,
    timeout=settings.PAYMENT_TIMEOUT_SECONDS,
)
