"""
Transactional email flows.

Each flow loads its data, checks the recipient's email preferences and
renders a template before handing it to send_email. A disabled preference
is not an error: the flow answers {"success": True, "sent": False}.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog

from beckah.config import settings
from beckah.core.exceptions import MarketplaceError, NotFoundError, ValidationError
from beckah.core.schemas import (
    OrderStatusUpdateRequest,
    ProductStatusEmailRequest,
    ReviewRequestEmailRequest,
    WelcomeEmailRequest,
)
from beckah.db import db
from beckah.services.email import templates
from beckah.services.email.sender import send_email
from beckah.services.email.templates import PLACEHOLDER_IMAGE, EmailItem

logger = structlog.get_logger()

UPDATE_TYPES = ("order_status", "payment_status")


# ==========================================
# Preferences
# ==========================================

def emails_enabled(profile: Optional[Dict[str, Any]], preference: Optional[str] = None) -> bool:
    """
    Whether a user accepts a category of email.

    The master switch `email_notifications_enabled` must be on. A per-type
    preference only blocks the email when it is explicitly False.
    """
    if not profile or not profile.get("email_notifications_enabled"):
        return False
    if preference is None:
        return True
    preferences = profile.get("email_preferences") or {}
    return preferences.get(preference) is not False


def not_sent(message: str) -> Dict[str, Any]:
    logger.info("email_skipped", reason=message)
    return {"success": True, "sent": False, "message": message}


def sent(result: Dict[str, Any], message: str) -> Dict[str, Any]:
    return {**result, "sent": True, "message": message}


# ==========================================
# Data helpers
# ==========================================

def product_image(product: Dict[str, Any]) -> str:
    images = product.get("images") or []
    return images[0] if images else product.get("image_url") or PLACEHOLDER_IMAGE


def order_items(order: Dict[str, Any]) -> List[EmailItem]:
    items = []
    for row in order.get("order_items") or []:
        product = row.get("products") or {}
        items.append(
            EmailItem(
                title=product.get("title") or "Product",
                quantity=row.get("quantity") or 1,
                price=float(row.get("price") or product.get("price") or 0),
                image_url=product_image(product),
            )
        )
    return items


def format_date(value: Optional[str]) -> str:
    """ISO timestamp -> 'January 5, 2025'."""
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def shipping_address(order: Dict[str, Any]) -> str:
    parts = [
        order.get("shipping_address_line1"),
        order.get("shipping_address_line2"),
        order.get("shipping_city"),
        order.get("shipping_state"),
        order.get("shipping_zip"),
    ]
    return ", ".join(p for p in parts if p)


async def load_order(order_id: str) -> Dict[str, Any]:
    order = await db.get_order(order_id)
    if not order:
        raise NotFoundError("Order", order_id)
    return order


async def load_order_recipient(order: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    recipient_id = order.get("buyer_id") or order.get("user_id")
    if not recipient_id:
        return None
    return await db.get_profile(recipient_id)


def display_name(profile: Optional[Dict[str, Any]], default: str = "Customer") -> str:
    return (profile or {}).get("full_name") or default


# ==========================================
# Account
# ==========================================

async def send_welcome_email(request: WelcomeEmailRequest) -> Dict[str, Any]:
    profile = await db.get_profile(request.user_id)
    if not emails_enabled(profile):
        return not_sent("User has disabled email notifications")

    content = templates.welcome(request.full_name, settings.site_url)
    result = await send_email(
        request.email,
        content.subject,
        content.html,
        user_id=request.user_id,
        email_type="welcome",
    )
    return sent(result, "Welcome email sent successfully")


# ==========================================
# Orders
# ==========================================

async def send_order_confirmation(order_id: str) -> Dict[str, Any]:
    order = await load_order(order_id)
    profile = await load_order_recipient(order)
    if not profile:
        raise NotFoundError("Customer profile", order.get("buyer_id") or order.get("user_id"))
    if not emails_enabled(profile, "order_updates"):
        return not_sent("User has disabled order update emails")

    content = templates.order_confirmation(
        order["id"],
        display_name(profile),
        order_items(order),
        float(order.get("total_amount") or 0),
        settings.site_url,
    )
    result = await send_email(
        profile["email"],
        content.subject,
        content.html,
        user_id=profile["id"],
        email_type="order_confirmation",
        metadata={"orderId": order["id"]},
    )
    return sent(result, "Order confirmation sent successfully")


async def send_order_status_update(request: OrderStatusUpdateRequest) -> Dict[str, Any]:
    """
    Email an order or payment status change.

    Raises:
        ValidationError: unknown updateType or the matching status is missing
        NotFoundError: the order or its customer does not exist
    """
    if request.update_type not in UPDATE_TYPES:
        raise ValidationError(
            "Invalid updateType. Must be 'order_status' or 'payment_status'",
            field="updateType",
            value=request.update_type,
        )
    if request.update_type == "order_status" and not request.new_status:
        raise ValidationError("newStatus is required for order_status updates", field="newStatus")
    if request.update_type == "payment_status" and not request.new_payment_status:
        raise ValidationError(
            "newPaymentStatus is required for payment_status updates",
            field="newPaymentStatus",
        )

    order = await load_order(request.order_id)
    profile = await load_order_recipient(order)
    if not profile:
        raise NotFoundError("Customer profile", order.get("buyer_id") or order.get("user_id"))
    if not emails_enabled(profile, "order_updates"):
        return not_sent("User has disabled order update emails")

    total = float(order.get("total_amount") or 0)
    if request.update_type == "order_status":
        content = templates.order_status_update(
            order["id"], display_name(profile), request.new_status, order_items(order), total, settings.site_url
        )
        status = request.new_status
    else:
        content = templates.payment_status_update(
            order["id"], display_name(profile), request.new_payment_status, total, settings.site_url
        )
        status = request.new_payment_status

    result = await send_email(
        profile["email"],
        content.subject,
        content.html,
        user_id=profile["id"],
        email_type=request.update_type,
        metadata={"orderId": order["id"], "updateType": request.update_type, "status": status},
    )
    return sent(result, "Status update email sent successfully")


async def send_shipping_notification(order_id: str) -> Dict[str, Any]:
    order = await load_order(order_id)
    if not order.get("tracking_number"):
        raise ValidationError("Order has no tracking number", field="tracking_number")

    profile = await load_order_recipient(order)
    if not profile:
        raise NotFoundError("Customer profile", order.get("buyer_id") or order.get("user_id"))
    if not emails_enabled(profile, "shipping_updates"):
        return not_sent("User has disabled shipping update emails")

    content = templates.shipping_notification(
        order["id"],
        display_name(profile),
        order["tracking_number"],
        order.get("shipping_company") or "Standard Carrier",
        order_items(order),
        settings.site_url,
    )
    result = await send_email(
        profile["email"],
        content.subject,
        content.html,
        user_id=profile["id"],
        email_type="shipping_notification",
        metadata={"orderId": order["id"], "trackingNumber": order["tracking_number"]},
    )
    return sent(result, "Shipping notification sent successfully")


async def send_delivery_confirmation(order_id: str) -> Dict[str, Any]:
    order = await load_order(order_id)
    profile = await load_order_recipient(order)
    if not profile:
        raise NotFoundError("Customer profile", order.get("buyer_id") or order.get("user_id"))
    if not emails_enabled(profile, "order_updates"):
        return not_sent("User has disabled order update emails")

    content = templates.delivery_confirmation(order["id"], display_name(profile), settings.site_url)
    result = await send_email(
        profile["email"],
        content.subject,
        content.html,
        user_id=profile["id"],
        email_type="delivery_confirmation",
        metadata={"orderId": order["id"]},
    )
    return sent(result, "Delivery confirmation sent successfully")


async def send_review_request(request: ReviewRequestEmailRequest) -> Dict[str, Any]:
    order = await load_order(request.order_id)
    product = await db.get_product(request.product_id)
    if not product:
        raise NotFoundError("Product", request.product_id)

    profile = await load_order_recipient(order)
    if not profile:
        raise NotFoundError("Customer profile", order.get("buyer_id") or order.get("user_id"))
    if not emails_enabled(profile, "review_requests"):
        return not_sent("User has disabled review request emails")

    item = EmailItem(
        title=product.get("title") or "Product",
        price=product.get("price"),
        image_url=product_image(product),
    )
    content = templates.review_request(display_name(profile), item, product["id"], settings.site_url)
    result = await send_email(
        profile["email"],
        content.subject,
        content.html,
        user_id=profile["id"],
        email_type="review_request",
        metadata={"orderId": order["id"], "productId": product["id"]},
    )
    return sent(result, "Review request sent successfully")


async def send_abandoned_cart(user_id: str) -> Dict[str, Any]:
    profile = await db.get_profile(user_id)
    if not profile:
        raise NotFoundError("User", user_id)
    if not emails_enabled(profile, "abandoned_cart_reminders"):
        return not_sent("User has disabled abandoned cart reminders")

    rows = await db.get_cart_items(user_id)
    if not rows:
        raise NotFoundError("Cart items", user_id)

    items = []
    for row in rows:
        product = row.get("products") or {}
        items.append(
            EmailItem(
                title=product.get("title") or "Product",
                quantity=row.get("quantity") or 1,
                price=float(product.get("price") or 0),
                image_url=product.get("image_url") or PLACEHOLDER_IMAGE,
            )
        )
    total = sum((item.price or 0) * item.quantity for item in items)

    content = templates.abandoned_cart(display_name(profile), items, total, settings.site_url)
    result = await send_email(
        profile["email"],
        content.subject,
        content.html,
        user_id=user_id,
        email_type="abandoned_cart",
        metadata={"itemCount": len(items), "total_amount": round(total, 2)},
    )
    return sent(result, "Abandoned cart email sent successfully")


# ==========================================
# Product submissions
# ==========================================

async def send_product_status_notification(request: ProductStatusEmailRequest) -> Dict[str, Any]:
    submission = await db.get_submission_with_seller(request.submission_id)
    if not submission:
        raise NotFoundError("Submission", request.submission_id)

    seller = submission.get("profiles")
    if not emails_enabled(seller):
        return not_sent("User has disabled email notifications")

    title = submission.get("title") or "Product"
    if request.status == "approved":
        content = templates.product_approved(
            display_name(seller, "Seller"),
            title,
            request.final_price if request.final_price is not None else float(submission.get("price") or 0),
            format_date(submission.get("reviewed_at")) or format_date(datetime.now().isoformat()),
            request.admin_notes or "",
            request.product_id,
            settings.site_url,
        )
    else:
        content = templates.product_rejected(
            display_name(seller, "Seller"),
            title,
            format_date(submission.get("created_at")),
            format_date(submission.get("reviewed_at")) or format_date(datetime.now().isoformat()),
            request.rejection_reason or "Does not meet our listing guidelines",
            settings.site_url,
        )

    result = await send_email(
        seller["email"],
        content.subject,
        content.html,
        user_id=seller.get("id"),
        email_type=f"product_{request.status}",
        metadata={"submissionId": request.submission_id, "status": request.status},
    )
    return sent(result, f"Product {request.status} email sent successfully")


async def _send_to_each(recipients: List[Dict[str, Any]], build) -> List[Dict[str, Any]]:
    """
    Send one email per recipient, one after another.

    `build(profile)` returns the send_email kwargs, or None to skip. A failed
    send is recorded in the result list instead of aborting the rest.
    """
    results: List[Dict[str, Any]] = []
    for profile in recipients:
        kwargs = build(profile)
        if kwargs is None:
            results.append({"email": profile.get("email"), "success": True, "skipped": True})
            continue
        try:
            result = await send_email(**kwargs)
        except MarketplaceError as e:
            logger.error("email_recipient_failed", recipient=profile.get("id"), error=str(e))
            results.append({"email": profile.get("email"), "success": False, "error": str(e)})
            continue
        results.append({"email": profile.get("email"), "success": True, "logId": result["logId"]})
    return results


async def send_product_submission_to_admin(submission_id: str) -> Dict[str, Any]:
    submission = await db.get_submission_with_seller(submission_id)
    if not submission:
        raise NotFoundError("Submission", submission_id)

    admins = [a for a in await db.get_admins() if a.get("email_notifications_enabled") is not False]
    if not admins:
        return not_sent("No admins to notify")

    seller = submission.get("profiles") or {}
    content = templates.submission_to_admin(
        submission["id"],
        submission.get("title") or "Product",
        display_name(seller, "Seller"),
        seller.get("email") or "",
        float(submission.get("price") or 0),
        submission.get("submission_type") or "",
        submission.get("description") or "",
        format_date(submission.get("created_at")),
        settings.site_url,
    )

    results = await _send_to_each(
        admins,
        lambda admin: {
            "to": admin["email"],
            "subject": content.subject,
            "html": content.html,
            "user_id": admin["id"],
            "email_type": "product_submission_to_admin",
            "metadata": {"submissionId": submission["id"]},
        },
    )
    return {
        "success": True,
        "sent": any(r["success"] and not r.get("skipped") for r in results),
        "message": f"Notified {sum(1 for r in results if r['success'])} admin(s)",
        "results": results,
    }


def seller_earnings(items: List[Dict[str, Any]]) -> float:
    """Item totals minus the platform commission."""
    gross = sum(float(row.get("price") or 0) * (row.get("quantity") or 1) for row in items)
    return round(gross * (1 - settings.platform_commission_rate), 2)


async def send_new_order_to_seller(order_id: str) -> Dict[str, Any]:
    order = await load_order(order_id)
    rows = order.get("order_items") or []

    seller_ids = []
    for row in rows:
        seller_id = (row.get("products") or {}).get("seller_id")
        if seller_id and seller_id not in seller_ids:
            seller_ids.append(seller_id)
    if not seller_ids:
        return not_sent("Order has no seller items")

    sellers = [s for s in await db.get_profiles(seller_ids) if s.get("email_notifications_enabled") is not False]
    buyer = order.get("profiles") or {}

    def build(seller: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        own = [r for r in rows if (r.get("products") or {}).get("seller_id") == seller["id"]]
        if not own:
            return None
        first = own[0]
        product = first.get("products") or {}
        content = templates.new_order_to_seller(
            display_name(seller, "Seller"),
            order["id"],
            format_date(order.get("created_at")),
            display_name(buyer),
            EmailItem(
                title=product.get("title") or "Product",
                quantity=first.get("quantity") or 1,
                price=float(first.get("price") or 0),
                image_url=product_image(product),
            ),
            seller_earnings(own),
            shipping_address(order),
            settings.site_url,
        )
        return {
            "to": seller["email"],
            "subject": content.subject,
            "html": content.html,
            "user_id": seller["id"],
            "email_type": "new_order_to_seller",
            "metadata": {"orderId": order["id"], "sellerId": seller["id"], "itemCount": len(own)},
        }

    results = await _send_to_each(sellers, build)
    return {
        "success": True,
        "sent": any(r["success"] and not r.get("skipped") for r in results),
        "message": f"Notified {sum(1 for r in results if r['success'] and not r.get('skipped'))} seller(s)",
        "results": results,
    }
