from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from beckah.core.exceptions import GeminiError, NotFoundError
from beckah.main import app


@pytest.fixture
def client():
    return TestClient(app, raise_server_exceptions=False)


# ----------------------------------------------------------------------
# basic routes
# ----------------------------------------------------------------------
def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_ready_reports_missing_keys(client):
    with patch("beckah.db.db.ping", AsyncMock(side_effect=RuntimeError("no database"))):
        response = client.get("/ready")

    assert response.status_code == 503
    checks = response.json()["checks"]
    assert checks["database"].startswith("error:")
    assert checks["stripe"] == "missing_key"


def test_options_preflight(client):
    response = client.options("/auto-validate-product")

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_debug_wizard(client):
    steps = client.get("/debug/wizard").json()["steps"]

    assert steps["submission_type"]["next"] == "price"
    assert steps["review"]["is_terminal"] is True


# ----------------------------------------------------------------------
# error shapes
# ----------------------------------------------------------------------
def test_missing_fields_are_400(client):
    response = client.post("/auto-validate-product", json={"title": "Chair"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"].startswith("Missing or invalid fields")
    assert "submission_id" in body["details"]["missing_fields"]


def test_invalid_json_is_400(client):
    response = client.post(
        "/create-payment-intent",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400


def test_unknown_wizard_step_is_400(client):
    response = client.post("/ai-product-assistant", json={"message": "hi", "currentStep": "checkout"})

    assert response.status_code == 400


def test_missing_provider_key_is_500(client):
    response = client.post("/create-payment-intent", json={"amount": 10, "orderId": "order-1"})

    assert response.status_code == 500
    assert response.json()["error"] == "STRIPE_SECRET_KEY is not configured"


def test_image_required_is_400(client, configured):
    response = client.post("/gemini-analyze-image", json={})

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_not_found_is_404(client):
    with patch(
        "beckah.api.emails.notifications.send_order_confirmation",
        AsyncMock(side_effect=NotFoundError("Order", "x")),
    ):
        response = client.post("/send-order-confirmation", json={"orderId": "x"})

    assert response.status_code == 404
    assert response.json()["error"] == "Order not found"


def test_upstream_error_is_500_with_localized_message(client, configured):
    with patch(
        "beckah.services.gemini.GeminiClient.generate",
        AsyncMock(side_effect=GeminiError("Gemini API error: 429", status_code=429)),
    ):
        response = client.post("/gemini-analyze-image", json={"imageBase64": "AAAA"})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "تم تجاوز حد الاستخدام. حاول مرة أخرى لاحقاً"
    assert body["statusCode"] == 429


def test_unexpected_error_is_generic_500(client):
    with patch("beckah.api.submissions.auto_validate", AsyncMock(side_effect=RuntimeError("boom"))):
        response = client.post(
            "/auto-validate-product",
            json={"submission_id": "s1", "title": "Chair", "description": "Oak"},
        )

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


# ----------------------------------------------------------------------
# happy paths
# ----------------------------------------------------------------------
def test_auto_validate_flagged(client):
    response = client.post(
        "/auto-validate-product",
        json={"submission_id": "s1", "title": "Vape pen", "description": "", "category": ""},
    )

    assert response.status_code == 200
    assert response.json()["flagged_keywords"] == ["vape"]


def test_assistant_route(client, configured):
    with patch("beckah.services.assistant.chat_completion", AsyncMock(return_value='{"reply": "Hi!"}')):
        response = client.post("/ai-product-assistant", json={"message": "hello", "currentStep": "start"})

    assert response.status_code == 200
    assert response.json() == {"response": "Hi!", "suggestions": {}, "nextStep": "category"}


def test_disabled_email_preference_is_200_not_sent(client, fake_db):
    fake_db.get_profile.return_value = {"id": "u1", "email": "u1@example.com", "email_notifications_enabled": False}

    response = client.post("/send-welcome-email", json={"userId": "u1", "email": "u1@example.com"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["sent"] is False
    fake_db.insert_email_log.assert_not_awaited()
