"""
Stripe payment intents.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict

import httpx
import structlog

from beckah.config import settings
from beckah.core.exceptions import StripeError
from beckah.core.schemas import PaymentIntentRequest

logger = structlog.get_logger()


def to_minor_units(amount: float) -> int:
    """Dollars to cents, rounding half up (10.005 -> 1001)."""
    cents = (Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


async def create_payment_intent(request: PaymentIntentRequest) -> Dict[str, Any]:
    """
    Create a PaymentIntent for an order.

    Returns:
        {"clientSecret", "paymentIntentId"}

    Raises:
        ConfigurationError: STRIPE_SECRET_KEY is missing
        StripeError: Stripe rejected the request
    """
    secret_key = settings.require("stripe_secret_key")
    amount = to_minor_units(request.amount)

    form = {
        "amount": str(amount),
        "currency": settings.payment_currency,
        "automatic_payment_methods[enabled]": "true",
        "metadata[order_id]": request.order_id,
    }

    try:
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
            r = await client.post(
                f"{settings.stripe_api_base.rstrip('/')}/payment_intents",
                headers={"Authorization": f"Bearer {secret_key}"},
                data=form,
            )
    except httpx.HTTPError as e:
        raise StripeError(f"Stripe request failed: {e}") from e

    if r.status_code >= 400:
        logger.error("stripe_error", status=r.status_code, order_id=request.order_id)
        raise StripeError(
            f"Stripe API error: {r.status_code}",
            status_code=r.status_code,
            response=r.text,
        )

    intent = r.json()
    logger.info("payment_intent_created", order_id=request.order_id, amount=amount)

    return {
        "clientSecret": intent["client_secret"],
        "paymentIntentId": intent["id"],
    }
