"""
Listing assistant route.
"""
from typing import Any

from fastapi import APIRouter

from beckah.core.schemas import AssistantRequest
from beckah.services.assistant import run_assistant

router = APIRouter(tags=["assistant"])


@router.post("/ai-product-assistant")
async def ai_product_assistant(request: AssistantRequest) -> dict[str, Any]:
    return await run_assistant(request)
