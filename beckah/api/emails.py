"""
Transactional email routes.
"""
from typing import Any

from fastapi import APIRouter

from beckah.core.schemas import (
    OrderEmailRequest,
    OrderStatusUpdateRequest,
    ProductStatusEmailRequest,
    ReviewRequestEmailRequest,
    SendEmailRequest,
    SubmissionEmailRequest,
    UserEmailRequest,
    WelcomeEmailRequest,
)
from beckah.services.email import notifications
from beckah.services.email.sender import send_email

router = APIRouter(tags=["email"])


@router.post("/send-email")
async def send_email_route(request: SendEmailRequest) -> dict[str, Any]:
    """Send raw HTML through Resend and log it."""
    return await send_email(
        request.to,
        request.subject,
        request.html,
        user_id=request.user_id,
        email_type=request.email_type,
        metadata=request.metadata,
    )


@router.post("/send-welcome-email")
async def send_welcome_email(request: WelcomeEmailRequest) -> dict[str, Any]:
    return await notifications.send_welcome_email(request)


@router.post("/send-order-confirmation")
async def send_order_confirmation(request: OrderEmailRequest) -> dict[str, Any]:
    return await notifications.send_order_confirmation(request.order_id)


@router.post("/send-order-status-update")
async def send_order_status_update(request: OrderStatusUpdateRequest) -> dict[str, Any]:
    return await notifications.send_order_status_update(request)


@router.post("/send-shipping-notification")
async def send_shipping_notification(request: OrderEmailRequest) -> dict[str, Any]:
    return await notifications.send_shipping_notification(request.order_id)


@router.post("/send-delivery-confirmation")
async def send_delivery_confirmation(request: OrderEmailRequest) -> dict[str, Any]:
    return await notifications.send_delivery_confirmation(request.order_id)


@router.post("/send-review-request")
async def send_review_request(request: ReviewRequestEmailRequest) -> dict[str, Any]:
    return await notifications.send_review_request(request)


@router.post("/send-abandoned-cart")
async def send_abandoned_cart(request: UserEmailRequest) -> dict[str, Any]:
    return await notifications.send_abandoned_cart(request.user_id)


@router.post("/send-product-status-notification")
async def send_product_status_notification(request: ProductStatusEmailRequest) -> dict[str, Any]:
    return await notifications.send_product_status_notification(request)


@router.post("/send-product-submission-to-admin")
async def send_product_submission_to_admin(request: SubmissionEmailRequest) -> dict[str, Any]:
    return await notifications.send_product_submission_to_admin(request.submission_id)


@router.post("/send-new-order-to-seller")
async def send_new_order_to_seller(request: OrderEmailRequest) -> dict[str, Any]:
    return await notifications.send_new_order_to_seller(request.order_id)
