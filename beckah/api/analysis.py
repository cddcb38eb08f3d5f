"""
Product analysis routes (photos and free text).
"""
from typing import Any

from fastapi import APIRouter

from beckah.core.schemas import DescriptionAnalysisRequest, ImageAnalysisRequest
from beckah.services.analysis import (
    analyze_description,
    analyze_image_with_gemini,
    analyze_image_with_groq,
)

router = APIRouter(tags=["analysis"])


@router.post("/gemini-analyze-image")
async def gemini_analyze_image(request: ImageAnalysisRequest) -> dict[str, Any]:
    return await analyze_image_with_gemini(request)


@router.post("/groq-analyze-image")
async def groq_analyze_image(request: ImageAnalysisRequest) -> dict[str, Any]:
    return await analyze_image_with_groq(request)


@router.post("/analyze-product")
async def analyze_product(request: DescriptionAnalysisRequest) -> dict[str, Any]:
    """Draft a listing from a free-text description."""
    return await analyze_description(request)
