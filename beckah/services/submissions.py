"""
Submission screening: moderation gate, pricing and auto-publishing.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

import structlog

from beckah.config import settings
from beckah.core.exceptions import NotFoundError
from beckah.core.moderation import ModerationVerdict, get_moderation_gate
from beckah.core.schemas import (
    AutoValidateRequest,
    Notification,
    NotificationType,
    PricingSuggestion,
)
from beckah.db import db
from beckah.services.pricing import suggest_price, user_suggested_pricing

logger = structlog.get_logger()


# ==========================================
# Stateless validation (no database)
# ==========================================

async def auto_validate(request: AutoValidateRequest) -> Dict[str, Any]:
    """
    Screen a submission and, if it passes, suggest a price.

    Returns the verdict as a JSON-ready dict.
    """
    verdict = get_moderation_gate().evaluate_submission(
        request.title,
        request.description,
        request.category,
    )

    if not verdict.approved:
        logger.info(
            "submission_flagged",
            submission_id=request.submission_id,
            flagged_keywords=list(verdict.flagged_keywords),
        )
        return verdict.to_dict()

    pricing = await suggest_price(
        title=request.title,
        description=request.description,
        category=request.category,
        user_price=request.user_price,
    )

    return {
        "approved": True,
        "requires_manual_review": False,
        "suggested_price": pricing.suggested_price,
        "pricing_reasoning": pricing.reasoning,
        "pricing_confidence": pricing.confidence.value,
    }


# ==========================================
# Full processing (database side effects)
# ==========================================

async def _notify_admins(
    type_: NotificationType,
    title: str,
    message: str,
    link: str,
) -> None:
    admins = await db.get_admins()
    rows = [
        Notification(user_id=admin["id"], type=type_, title=title, message=message, link=link)
        for admin in admins
    ]
    await db.insert_notifications([row.model_dump(mode="json") for row in rows])


async def _notify_user(
    user_id: str,
    type_: NotificationType,
    title: str,
    message: str,
    link: str = "/dashboard",
) -> None:
    row = Notification(user_id=user_id, type=type_, title=title, message=message, link=link)
    await db.insert_notifications([row.model_dump(mode="json")])


async def _flag_submission(submission: Dict[str, Any], verdict: ModerationVerdict) -> Dict[str, Any]:
    detected = ", ".join(verdict.flagged_keywords)
    await db.update_submission(
        submission["id"],
        {
            "ai_validation_status": "flagged",
            "ai_validation_notes": (
                "Product contains prohibited items and requires admin review. "
                f"Detected: {detected}"
            ),
            "requires_manual_review": True,
            "status": "pending",
        },
    )

    await _notify_admins(
        NotificationType.WARNING,
        "Product Requires Review",
        f'Product "{submission["title"]}" requires manual review. Flagged by AI for prohibited items.',
        "/admin/submissions",
    )
    await _notify_user(
        submission["user_id"],
        NotificationType.INFO,
        "Product Under Review",
        f'Your product "{submission["title"]}" is being reviewed by our team. '
        "We will notify you once it is approved.",
    )

    return {
        "success": True,
        "approved": False,
        "requires_review": True,
        "flagged_keywords": list(verdict.flagged_keywords),
    }


async def _price_submission(submission: Dict[str, Any], category: str | None) -> PricingSuggestion:
    if not settings.gemini_api_key:
        logger.info("pricing_skipped", reason="gemini_not_configured")
        return user_suggested_pricing(submission.get("price"))

    return await suggest_price(
        title=submission["title"],
        description=submission.get("description") or "",
        category=category,
        condition=submission.get("condition"),
        user_price=submission.get("price"),
    )


async def _publish_submission(submission: Dict[str, Any], pricing: PricingSuggestion) -> Dict[str, Any]:
    product = await db.create_product(
        {
            "title": submission["title"],
            "description": submission.get("description"),
            "category_id": submission.get("category_id"),
            "condition": submission.get("condition"),
            "price": pricing.suggested_price,
            "original_price": submission.get("original_price"),
            "stock": 1,
            "images": submission.get("images") or [],
            "status": "available",
        }
    )

    await db.update_submission(
        submission["id"],
        {
            "ai_validation_status": "approved",
            "ai_suggested_price": pricing.suggested_price,
            "ai_validation_notes": pricing.reasoning,
            "requires_manual_review": False,
            "auto_published": True,
            "status": "approved",
            "final_price": pricing.suggested_price,
            "reviewed_at": datetime.now(timezone.utc).isoformat(),
        },
    )

    await _notify_admins(
        NotificationType.SYSTEM,
        "Auto-Published Product",
        f'Product "{submission["title"]}" was automatically validated and published. '
        f"AI suggested price: ${pricing.suggested_price}",
        "/admin/products",
    )
    await _notify_user(
        submission["user_id"],
        NotificationType.SUCCESS,
        "Product Published!",
        f'Your product "{submission["title"]}" has been automatically approved and '
        f"published at ${pricing.suggested_price}.",
    )

    return {
        "success": True,
        "approved": True,
        "product_id": product.get("id"),
        "suggested_price": pricing.suggested_price,
    }


async def process_new_submission(submission_id: str) -> Dict[str, Any]:
    """
    Screen a stored submission and either flag it or publish it.

    Raises:
        NotFoundError: the submission does not exist
    """
    submission = await db.get_submission(submission_id)
    if not submission:
        raise NotFoundError("Submission", submission_id)

    category = (submission.get("categories") or {}).get("name")
    verdict = get_moderation_gate().evaluate_submission(
        submission.get("title"),
        submission.get("description"),
        category,
    )

    log = logger.bind(submission_id=submission_id)

    if not verdict.approved:
        log.info("submission_flagged", flagged_keywords=list(verdict.flagged_keywords))
        return await _flag_submission(submission, verdict)

    pricing = await _price_submission(submission, category)
    result = await _publish_submission(submission, pricing)
    log.info("submission_published", product_id=result["product_id"], price=pricing.suggested_price)
    return result
