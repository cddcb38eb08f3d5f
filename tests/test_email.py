from unittest.mock import AsyncMock, patch

import pytest

from beckah.core.exceptions import NotFoundError, ResendError, ValidationError
from beckah.core.schemas import (
    OrderStatusUpdateRequest,
    ProductStatusEmailRequest,
    ReviewRequestEmailRequest,
    WelcomeEmailRequest,
)
from beckah.services.email import notifications, templates
from beckah.services.email.notifications import emails_enabled, seller_earnings
from beckah.services.email.sender import send_email

from .conftest import make_response

# ----------------------------------------------------------------------
# helpers
# ----------------------------------------------------------------------
BUYER = {
    "id": "buyer-1",
    "full_name": "Sara",
    "email": "sara@example.com",
    "email_notifications_enabled": True,
    "email_preferences": {"order_updates": True},
}

ORDER = {
    "id": "order-1",
    "buyer_id": "buyer-1",
    "total_amount": "45.00",
    "created_at": "2025-01-05T10:00:00Z",
    "tracking_number": None,
    "shipping_address_line1": "1 Main St",
    "shipping_city": "Springfield",
    "profiles": {"full_name": "Sara", "email": "sara@example.com"},
    "order_items": [
        {"quantity": 1, "price": "20.00", "products": {"title": "Lamp", "seller_id": "seller-1", "images": []}},
        {"quantity": 1, "price": "25.00", "products": {"title": "Desk", "seller_id": "seller-2", "images": ["d.jpg"]}},
    ],
}

SENT = {"success": True, "message": "Email sent successfully", "logId": "log-1", "resendId": "re_1"}


@pytest.fixture
def mock_send(monkeypatch):
    send = AsyncMock(return_value=SENT)
    monkeypatch.setattr(notifications, "send_email", send)
    return send


# ----------------------------------------------------------------------
# send_email
# ----------------------------------------------------------------------
@pytest.mark.asyncio
@patch("beckah.services.email.sender.httpx.AsyncClient")
async def test_send_email_logs_pending_then_sent(mock_client, fake_db, configured):
    post = AsyncMock(return_value=make_response({"id": "re_123"}))
    mock_client.return_value.__aenter__.return_value.post = post

    result = await send_email("a@b.co", "Hi", "<p>Hi</p>", user_id="u1", email_type="welcome", metadata={"k": 1})

    assert result["success"] is True
    assert result["resendId"] == "re_123"

    pending = fake_db.insert_email_log.call_args.args[0]
    assert pending["status"] == "pending"
    assert pending["id"] == result["logId"]

    log_id, update = fake_db.update_email_log.call_args.args
    assert log_id == result["logId"]
    assert update["status"] == "sent"
    assert update["metadata"] == {"k": 1, "resend_id": "re_123"}

    body = post.call_args.kwargs["json"]
    assert body["from"] == "BECKAH EXCHANGE <onboarding@resend.dev>"
    assert body["to"] == ["a@b.co"]


@pytest.mark.asyncio
@patch("beckah.services.email.sender.httpx.AsyncClient")
async def test_send_email_failure_is_logged(mock_client, fake_db, configured):
    mock_client.return_value.__aenter__.return_value.post = AsyncMock(
        return_value=make_response(text="invalid from", status=422)
    )

    with pytest.raises(ResendError):
        await send_email("a@b.co", "Hi", "<p>Hi</p>")

    update = fake_db.update_email_log.call_args.args[1]
    assert update == {"status": "failed", "error_message": "invalid from"}


# ----------------------------------------------------------------------
# preferences
# ----------------------------------------------------------------------
def test_preferences():
    assert not emails_enabled(None)
    assert not emails_enabled({"email_notifications_enabled": False})
    assert emails_enabled({"email_notifications_enabled": True}, "order_updates")
    assert emails_enabled(
        {"email_notifications_enabled": True, "email_preferences": {"order_updates": None}},
        "order_updates",
    )
    assert not emails_enabled(
        {"email_notifications_enabled": True, "email_preferences": {"review_requests": False}},
        "review_requests",
    )


@pytest.mark.asyncio
async def test_welcome_skipped_when_disabled(fake_db, mock_send):
    fake_db.get_profile.return_value = {**BUYER, "email_notifications_enabled": False}

    result = await notifications.send_welcome_email(
        WelcomeEmailRequest(userId="buyer-1", email="sara@example.com")
    )

    assert result["success"] is True
    assert result["sent"] is False
    mock_send.assert_not_awaited()


@pytest.mark.asyncio
async def test_order_confirmation(fake_db, mock_send):
    fake_db.get_order.return_value = ORDER
    fake_db.get_profile.return_value = BUYER

    result = await notifications.send_order_confirmation("order-1")

    assert result["sent"] is True
    assert result["logId"] == "log-1"
    args, kwargs = mock_send.call_args
    assert args[0] == "sara@example.com"
    assert args[1] == "Order Confirmed - #order-1"
    assert "$45.00" in args[2]
    assert kwargs["email_type"] == "order_confirmation"


@pytest.mark.asyncio
async def test_missing_order(fake_db, mock_send):
    fake_db.get_order.return_value = None

    with pytest.raises(NotFoundError):
        await notifications.send_delivery_confirmation("missing")


@pytest.mark.asyncio
async def test_status_update_validation(fake_db, mock_send):
    with pytest.raises(ValidationError):
        await notifications.send_order_status_update(
            OrderStatusUpdateRequest(orderId="order-1", updateType="refund")
        )
    with pytest.raises(ValidationError):
        await notifications.send_order_status_update(
            OrderStatusUpdateRequest(orderId="order-1", updateType="payment_status")
        )
    fake_db.get_order.assert_not_awaited()


@pytest.mark.asyncio
async def test_payment_status_update(fake_db, mock_send):
    fake_db.get_order.return_value = ORDER
    fake_db.get_profile.return_value = BUYER

    await notifications.send_order_status_update(
        OrderStatusUpdateRequest(orderId="order-1", updateType="payment_status", newPaymentStatus="failed")
    )

    assert mock_send.call_args.args[1] == "Payment Failed - Order #order-1"
    assert mock_send.call_args.kwargs["metadata"]["status"] == "failed"


@pytest.mark.asyncio
async def test_shipping_requires_tracking_number(fake_db, mock_send):
    fake_db.get_order.return_value = ORDER

    with pytest.raises(ValidationError):
        await notifications.send_shipping_notification("order-1")


@pytest.mark.asyncio
async def test_shipping_respects_preference(fake_db, mock_send):
    fake_db.get_order.return_value = {**ORDER, "tracking_number": "TRK1"}
    fake_db.get_profile.return_value = {**BUYER, "email_preferences": {"shipping_updates": False}}

    result = await notifications.send_shipping_notification("order-1")

    assert result["sent"] is False
    mock_send.assert_not_awaited()


@pytest.mark.asyncio
async def test_abandoned_cart_needs_items(fake_db, mock_send):
    fake_db.get_profile.return_value = BUYER
    fake_db.get_cart_items.return_value = []

    with pytest.raises(NotFoundError):
        await notifications.send_abandoned_cart("buyer-1")


@pytest.mark.asyncio
async def test_product_rejected_email(fake_db, mock_send):
    fake_db.get_submission_with_seller.return_value = {
        "id": "sub-1",
        "title": "Old <b>lamp</b>",
        "created_at": "2025-01-05T10:00:00Z",
        "profiles": BUYER,
    }

    await notifications.send_product_status_notification(
        ProductStatusEmailRequest(submissionId="sub-1", status="rejected", rejectionReason="Blurry photos")
    )

    args, kwargs = mock_send.call_args
    assert kwargs["email_type"] == "product_rejected"
    assert "Old &lt;b&gt;lamp&lt;/b&gt;" in args[2]
    assert "January 5, 2025" in args[2]
    assert "Blurry photos" in args[2]


# ----------------------------------------------------------------------
# multi-recipient sends
# ----------------------------------------------------------------------
def test_seller_earnings_after_commission():
    assert seller_earnings([{"price": "20.00", "quantity": 2}, {"price": 5, "quantity": 1}]) == 40.5


@pytest.mark.asyncio
async def test_new_order_notifies_each_seller(fake_db, mock_send):
    fake_db.get_order.return_value = ORDER
    fake_db.get_profiles.return_value = [
        {"id": "seller-1", "email": "s1@example.com", "full_name": "Ali", "email_notifications_enabled": None},
        {"id": "seller-2", "email": "s2@example.com", "email_notifications_enabled": False},
    ]

    result = await notifications.send_new_order_to_seller("order-1")

    fake_db.get_profiles.assert_awaited_once_with(["seller-1", "seller-2"])
    assert mock_send.await_count == 1
    kwargs = mock_send.call_args.kwargs
    assert kwargs["to"] == "s1@example.com"
    assert "$18.00" in kwargs["html"]
    assert "1 Main St, Springfield" in kwargs["html"]
    assert result["results"] == [{"email": "s1@example.com", "success": True, "logId": "log-1"}]


@pytest.mark.asyncio
async def test_admin_failures_are_reported_per_recipient(fake_db, mock_send):
    fake_db.get_submission_with_seller.return_value = {"id": "sub-1", "title": "Lamp", "price": 5, "profiles": BUYER}
    fake_db.get_admins.return_value = [
        {"id": "admin-1", "email": "a1@example.com"},
        {"id": "admin-2", "email": "a2@example.com"},
    ]
    mock_send.side_effect = [ResendError("Failed to send email: 500", status_code=500), SENT]

    result = await notifications.send_product_submission_to_admin("sub-1")

    assert result["success"] is True
    assert result["sent"] is True
    assert [r["success"] for r in result["results"]] == [False, True]


def test_templates_escape_user_data():
    content = templates.welcome("<script>x</script>", "https://beckahex.org")

    assert "<script>x</script>" not in content.html
    assert content.subject == "Welcome to Beckah Marketplace! 🎉"


@pytest.mark.asyncio
async def test_review_request(fake_db, mock_send):
    fake_db.get_order.return_value = ORDER
    fake_db.get_product.return_value = {"id": "prod-1", "title": "Desk", "price": 25, "images": ["d.jpg"]}
    fake_db.get_profile.return_value = BUYER

    result = await notifications.send_review_request(
        ReviewRequestEmailRequest(orderId="order-1", productId="prod-1")
    )

    assert result["sent"] is True
    args, kwargs = mock_send.call_args
    assert "https://beckahex.org/product/prod-1" in args[2]
    assert kwargs["metadata"] == {"orderId": "order-1", "productId": "prod-1"}


@pytest.mark.asyncio
async def test_review_request_missing_product(fake_db, mock_send):
    fake_db.get_order.return_value = ORDER
    fake_db.get_product.return_value = None

    with pytest.raises(NotFoundError):
        await notifications.send_review_request(
            ReviewRequestEmailRequest(orderId="order-1", productId="gone")
        )


@pytest.mark.asyncio
@patch("beckah.services.email.sender.httpx.AsyncClient")
async def test_send_email_accepted_without_json_body(mock_client, fake_db, configured):
    mock_client.return_value.__aenter__.return_value.post = AsyncMock(
        return_value=make_response(text="OK", status=200)
    )

    result = await send_email("a@b.co", "Hi", "<p>Hi</p>")

    assert result["success"] is True
    assert result["resendId"] is None
    update = fake_db.update_email_log.call_args.args[1]
    assert update["status"] == "sent"
    assert update["metadata"] == {"resend_id": None}
