"""
Pytest configuration for tests.

Provider keys are cleared BEFORE beckah is imported so a developer's .env
never leaks into the tests; fixtures switch them on where needed.
"""
import os

for _key in (
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "GROQ_API_KEY",
    "STRIPE_SECRET_KEY",
    "RESEND_API_KEY",
):
    os.environ[_key] = ""
os.environ["ENVIRONMENT"] = "development"
os.environ["DEBUG"] = "true"

from unittest.mock import MagicMock  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402

from beckah.config import settings  # noqa: E402
from beckah.db import Database  # noqa: E402


def make_response(json_data=None, status=200, text=None, headers=None):
    """Return an httpx.Response with the given JSON (or text) body."""
    kwargs = {"json": json_data} if text is None else {"text": text}
    return httpx.Response(
        status_code=status,
        headers=headers or {},
        request=httpx.Request("POST", "https://dummy"),
        **kwargs,
    )


@pytest.fixture
def configured(monkeypatch):
    """Every provider key set to a dummy value."""
    for name in (
        "openai_api_key",
        "gemini_api_key",
        "groq_api_key",
        "stripe_secret_key",
        "resend_api_key",
    ):
        monkeypatch.setattr(settings, name, f"test-{name}")
    return settings


@pytest.fixture
def fake_db(monkeypatch):
    """Database double shared by every module that imported `db`."""
    mock = MagicMock(spec=Database)
    for target in (
        "beckah.services.submissions.db",
        "beckah.services.email.sender.db",
        "beckah.services.email.notifications.db",
    ):
        monkeypatch.setattr(target, mock)
    return mock
