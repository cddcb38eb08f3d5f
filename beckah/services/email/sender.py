"""
Resend delivery with an email_logs audit trail.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
import structlog

from beckah.config import settings
from beckah.core.exceptions import ResendError
from beckah.db import db

logger = structlog.get_logger()


def sender_address() -> str:
    return f"{settings.email_sender_name} <{settings.from_email}>"


async def send_email(
    to: str,
    subject: str,
    html: str,
    user_id: Optional[str] = None,
    email_type: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Send one email through Resend and record it in email_logs.

    The log row is written as `pending` before the call, then moved to
    `sent` or `failed`.

    Returns:
        {"success", "message", "logId", "resendId"}

    Raises:
        ConfigurationError: RESEND_API_KEY is missing
        ResendError: Resend rejected the message
    """
    api_key = settings.require("resend_api_key")
    metadata = dict(metadata or {})
    log_id = str(uuid.uuid4())
    log = logger.bind(log_id=log_id, email_type=email_type)

    await db.insert_email_log(
        {
            "id": log_id,
            "user_id": user_id,
            "email_type": email_type or "custom",
            "recipient_email": to,
            "subject": subject,
            "status": "pending",
            "metadata": metadata,
        }
    )

    try:
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
            r = await client.post(
                settings.resend_api_url,
                headers={"Authorization": f"Bearer {api_key}"},
                json={
                    "from": sender_address(),
                    "to": [to],
                    "subject": subject,
                    "html": html,
                },
            )
    except httpx.HTTPError as e:
        await db.update_email_log(log_id, {"status": "failed", "error_message": str(e)})
        log.error("email_failed", error=str(e))
        raise ResendError(f"Failed to send email: {e}") from e

    if r.status_code >= 400:
        await db.update_email_log(log_id, {"status": "failed", "error_message": r.text[:500]})
        log.error("email_failed", status=r.status_code)
        raise ResendError(
            f"Failed to send email: {r.status_code}",
            status_code=r.status_code,
            response=r.text,
        )

    # Accepted (2xx) even when the body carries no readable id
    try:
        resend_id = r.json().get("id")
    except (ValueError, AttributeError):
        log.warning("email_response_unreadable", body=r.text[:200])
        resend_id = None

    await db.update_email_log(
        log_id,
        {
            "status": "sent",
            "sent_at": datetime.now(timezone.utc).isoformat(),
            "metadata": {**metadata, "resend_id": resend_id},
        },
    )
    log.info("email_sent", resend_id=resend_id)

    return {
        "success": True,
        "message": "Email sent successfully",
        "logId": log_id,
        "resendId": resend_id,
    }
