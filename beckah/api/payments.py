"""
Payment routes.
"""
from typing import Any

from fastapi import APIRouter

from beckah.core.schemas import PaymentIntentRequest
from beckah.services.payments import create_payment_intent

router = APIRouter(tags=["payments"])


@router.post("/create-payment-intent")
async def payment_intent(request: PaymentIntentRequest) -> dict[str, Any]:
    return await create_payment_intent(request)
