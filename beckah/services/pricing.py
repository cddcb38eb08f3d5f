"""
AI-assisted pricing for submissions that pass moderation.
"""
from __future__ import annotations

from typing import Optional

import structlog

from beckah.config import settings
from beckah.core.exceptions import AIResponseError, IntegrationError
from beckah.core.schemas import Confidence, PricingSuggestion
from beckah.services.gemini import get_gemini_client
from beckah.services.structured import parse_structured

logger = structlog.get_logger()

PRICING_PROMPT = """You are a product pricing expert. Analyze this product and suggest a fair market price in USD.

Product Details:
- Title: {title}
- Description: {description}
- Category: {category}
{extra}
Based on similar products in the market, what would be a fair selling price? Consider:
1. Product condition
2. Market value
3. Similar products pricing
4. Category standards

Respond ONLY with a JSON object in this format:
{{
  "suggested_price": <number>,
  "reasoning": "<brief explanation>",
  "confidence": "<high/medium/low>"
}}"""


def build_pricing_prompt(
    title: str,
    description: str,
    category: Optional[str],
    condition: Optional[str] = None,
    user_price: Optional[float] = None,
) -> str:
    extra_lines = []
    if condition:
        extra_lines.append(f"- Condition: {condition}")
    if user_price is not None:
        extra_lines.append(f"- User suggested price: ${user_price}")
    extra = "\n".join(extra_lines) + "\n" if extra_lines else ""

    return PRICING_PROMPT.format(
        title=title,
        description=description,
        category=category or "Unknown",
        extra=extra,
    )


def fallback_pricing(user_price: Optional[float]) -> PricingSuggestion:
    """Price used when the AI call fails or replies with garbage."""
    return PricingSuggestion(
        suggested_price=user_price if user_price is not None else settings.default_suggested_price,
        reasoning="Default pricing applied",
        confidence=Confidence.LOW,
    )


def user_suggested_pricing(user_price: Optional[float]) -> PricingSuggestion:
    """Price used when AI pricing is not configured at all."""
    return PricingSuggestion(
        suggested_price=user_price or settings.default_suggested_price,
        reasoning="Price based on user suggestion",
        confidence=Confidence.MEDIUM,
    )


async def suggest_price(
    *,
    title: str,
    description: str,
    category: Optional[str],
    condition: Optional[str] = None,
    user_price: Optional[float] = None,
) -> PricingSuggestion:
    """
    Ask Gemini for a price suggestion.

    Upstream failures and malformed replies fall back to
    `fallback_pricing`; a missing API key is not caught.

    Raises:
        ConfigurationError: GEMINI_API_KEY is not set
    """
    client = get_gemini_client()
    prompt = build_pricing_prompt(title, description, category, condition, user_price)

    try:
        text = await client.generate(
            settings.gemini_model,
            [{"text": prompt}],
            temperature=0.3,
            top_k=40,
            top_p=0.95,
            max_output_tokens=1024,
        )
        pricing = parse_structured(text, PricingSuggestion)
    except (IntegrationError, AIResponseError) as e:
        logger.warning("pricing_fallback", error=e.message, code=e.code)
        return fallback_pricing(user_price)

    logger.info(
        "pricing_suggested",
        suggested_price=pricing.suggested_price,
        confidence=pricing.confidence.value,
    )
    return pricing
