"""
Product analysis from photos (Gemini / Groq vision) and from free text (Gemini).
"""
from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Dict, List

import httpx
import structlog

from beckah.config import settings
from beckah.core.exceptions import (
    AIResponseError,
    GroqError,
    IntegrationError,
    ValidationError,
)
from beckah.core.schemas import (
    DescriptionAnalysis,
    DescriptionAnalysisRequest,
    ImageAnalysisRequest,
    ProductAnalysis,
)
from beckah.services.gemini import get_gemini_client
from beckah.services.llm import chat_completion, get_groq_client
from beckah.services.structured import parse_structured
from beckah.utils.text import match_category, truncate

logger = structlog.get_logger()

DEFAULT_MIME_TYPE = "image/jpeg"

PRODUCT_CATEGORIES: List[str] = [
    "Electronics",
    "Fashion",
    "Home & Garden",
    "Sports & Outdoors",
    "Books & Media",
    "Toys & Games",
    "Automotive",
    "Tools & Hardware",
]

IMAGE_PROMPT = """Analyze this product image and identify what product it is. Return ONLY valid JSON.

Available categories (choose the MOST RELEVANT one):
- Electronics (phones, computers, cameras, gadgets, tech accessories)
- Fashion (clothing, shoes, bags, accessories, jewelry, watches)
- Home & Garden (furniture, decor, kitchenware, bedding, plants, tools)
- Sports & Outdoors (sports equipment, camping gear, fitness, bikes)
- Books & Media (books, magazines, CDs, DVDs, vinyl records)
- Toys & Games (children's toys, board games, video games, puzzles)
- Automotive (car parts, accessories, tools, motorcycle items)
- Tools & Hardware (power tools, hand tools, construction equipment)

Return ONLY this JSON structure:
{
  "productName": "specific product name",
  "description": "detailed 40-60 word product description with key selling points",
  "features": ["list 3-5 key features or benefits"],
  "material": "primary material or construction",
  "targetAudience": "who would buy this",
  "suggestedCategories": ["EXACTLY ONE category from the list above that best matches"],
  "colors": ["visible colors in the product"],
  "brandInfo": "brand name if visible or recognizable",
  "tags": ["5-7 relevant search keywords"]
}"""

DESCRIPTION_PROMPT = """You are a product analysis expert for a charity marketplace. Analyze this product:
"{description}"

Your task:
1. Suggest an attractive, professional product name (in Arabic)
2. Write a short marketing description (in Arabic, 2-3 sentences)
3. Pick the matching category from the list below
4. Assess the product condition
5. Suggest 3 prices in USD:
   - symbolic ($1-$5): a donation to the platform
   - fair (40-60% of market price)
   - market (70-90% of market price)
6. One gentle sentence encouraging donation (in Arabic)

Categories: furniture, electronics, clothing, books, toys, sports, home, other
Conditions: Brand New, Like New, Good, Fair

Return ONLY a JSON object, no markdown:
{{
  "productName": "...",
  "description": "...",
  "category": "electronics",
  "condition": "Like New",
  "priceSuggestions": {{"symbolic": 3, "fair": 25, "market": 50}},
  "charityMessage": "...",
  "confidence": 0.9
}}"""

# User-facing messages for upstream HTTP failures
_UPSTREAM_MESSAGES: Dict[int, str] = {
    400: "مفتاح API غير صالح أو منتهي الصلاحية",
    401: "مفتاح API غير صالح",
    403: "ليس لديك إذن لاستخدام هذا API",
    429: "تم تجاوز حد الاستخدام. حاول مرة أخرى لاحقاً",
}
_DEFAULT_UPSTREAM_MESSAGE = "فشل تحليل الصورة"
_ANALYSIS_PARSE_MESSAGE = "فشل تحليل استجابة الذكاء الاصطناعي"


def localized_upstream_message(service: str, status_code: int | None) -> str:
    """Translate an upstream status code into a message for the seller."""
    if status_code is not None and status_code in _UPSTREAM_MESSAGES:
        return _UPSTREAM_MESSAGES[status_code]
    if status_code == 500:
        return f"خطأ في خادم {service.capitalize()}. حاول مرة أخرى"
    return _DEFAULT_UPSTREAM_MESSAGE


def _localize(e: IntegrationError) -> IntegrationError:
    e.message = localized_upstream_message(e.service, e.upstream_status)
    if e.upstream_status:
        e.extra["statusCode"] = e.upstream_status
    return e


# ==========================================
# Image input
# ==========================================

@dataclass
class InlineImage:
    data: str  # base64, no data-URL header
    mime_type: str

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


def require_image(request: ImageAnalysisRequest) -> None:
    if not request.image_url and not request.image_base64:
        raise ValidationError("Either imageUrl or imageBase64 is required", field="imageUrl")


def parse_base64_image(image_base64: str, mime_type: str | None = None) -> InlineImage:
    """
    Split a (possibly data-URL) base64 payload into data and mime type.

    "data:image/png;base64,AAAA" -> InlineImage("AAAA", "image/png")
    "data:image/png,AAAA"        -> InlineImage("AAAA", "image/png")
    """
    if not image_base64.startswith("data:"):
        return InlineImage(data=image_base64, mime_type=mime_type or DEFAULT_MIME_TYPE)

    header, _, data = image_base64.partition(",")
    detected = mime_type or header[5:].split(";")[0].strip()
    return InlineImage(data=data, mime_type=detected or DEFAULT_MIME_TYPE)


async def fetch_image(url: str) -> InlineImage:
    """Download an image and inline it as base64."""
    try:
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds, follow_redirects=True) as client:
            r = await client.get(url)
    except httpx.HTTPError as e:
        raise IntegrationError(f"Failed to fetch image: {e}", service="image_host") from e

    if r.status_code >= 400:
        raise IntegrationError(
            f"Failed to fetch image: {r.status_code}",
            service="image_host",
            status_code=r.status_code,
        )

    mime_type = r.headers.get("content-type", DEFAULT_MIME_TYPE).split(";")[0].strip()
    logger.debug("image_fetched", size=len(r.content), mime_type=mime_type)
    return InlineImage(data=base64.b64encode(r.content).decode("ascii"), mime_type=mime_type)


# ==========================================
# Analysis results
# ==========================================

def snap_categories(categories: List[str]) -> List[str]:
    """Map AI category names onto the canonical category list."""
    snapped: List[str] = []
    for name in categories:
        value = match_category(name, PRODUCT_CATEGORIES) or name
        if value not in snapped:
            snapped.append(value)
    return snapped


def parse_product_analysis(text: str) -> ProductAnalysis:
    """Validate a vision reply, falling back to an 'Unknown Product' analysis."""
    try:
        analysis = parse_structured(text, ProductAnalysis)
    except AIResponseError as e:
        logger.warning("image_analysis_fallback", error=e.message, raw=truncate(text or "", 80))
        return ProductAnalysis.unknown(text)

    analysis.suggested_categories = snap_categories(analysis.suggested_categories)
    return analysis


async def analyze_image_with_gemini(request: ImageAnalysisRequest) -> Dict[str, Any]:
    """Analyze a product photo with Gemini vision."""
    require_image(request)
    client = get_gemini_client()

    if request.image_base64:
        image = parse_base64_image(request.image_base64, request.mime_type)
    else:
        image = await fetch_image(request.image_url)

    logger.info("gemini_image_analysis", mime_type=image.mime_type, size=len(image.data))

    try:
        text = await client.generate(
            settings.gemini_vision_model,
            [
                {"text": IMAGE_PROMPT},
                {"inlineData": {"data": image.data, "mimeType": image.mime_type}},
            ],
            temperature=0.2,
            top_k=10,
            top_p=0.7,
            max_output_tokens=500,
        )
    except IntegrationError as e:
        raise _localize(e)
    except AIResponseError:
        text = ""

    return {"analysis": parse_product_analysis(text).to_response()}


async def analyze_image_with_groq(request: ImageAnalysisRequest) -> Dict[str, Any]:
    """Analyze a product photo with a Groq-hosted vision model."""
    require_image(request)
    client = get_groq_client()

    if request.image_url:
        image_url = request.image_url
    else:
        image_url = parse_base64_image(request.image_base64, request.mime_type).data_url

    try:
        text = await chat_completion(
            client,
            model=settings.groq_vision_model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": IMAGE_PROMPT},
                        {"type": "image_url", "image_url": {"url": image_url}},
                    ],
                }
            ],
            temperature=0.2,
            max_tokens=500,
            error_cls=GroqError,
        )
    except IntegrationError as e:
        raise _localize(e)
    except AIResponseError:
        text = ""

    return {"analysis": parse_product_analysis(text).to_response()}


# ==========================================
# Text analysis
# ==========================================

ANALYSIS_FAILURE_BODY: Dict[str, Any] = {
    "productName": "",
    "description": "",
    "category": "other",
    "condition": "Like New",
    "priceSuggestions": {"symbolic": 2, "fair": 10, "market": 20},
    "charityMessage": "💚 تبرعك سيساعد عائلة محتاجة",
    "confidence": 0,
}


async def analyze_description(request: DescriptionAnalysisRequest) -> Dict[str, Any]:
    """
    Draft a listing (name, description, category, prices) from free text.

    Raises:
        AIResponseError: reply missing the core fields (body carries defaults)
    """
    client = get_gemini_client()
    text = ""

    try:
        text = await client.generate(
            settings.gemini_model,
            [{"text": DESCRIPTION_PROMPT.format(description=request.description.strip())}],
            temperature=0.7,
            max_output_tokens=1000,
        )
        analysis = parse_structured(text, DescriptionAnalysis)
    except AIResponseError as e:
        logger.error("description_analysis_failed", error=e.message, raw=truncate(text, 120))
        e.message = _ANALYSIS_PARSE_MESSAGE
        e.extra.update(ANALYSIS_FAILURE_BODY)
        raise

    return analysis.to_response()
