"""
Custom exceptions for the Beckah marketplace services.

Hierarchy:
- MarketplaceError (base)
  - ValidationError (invalid request data, 400)
  - NotFoundError (missing entity, 404)
  - ConfigurationError (missing API key / env var, 500)
  - IntegrationError (third-party API failure, 500)
    - GeminiError
    - OpenAIError
    - GroqError
    - StripeError
    - ResendError
  - AIResponseError (unparsable AI output, always replaced by a fallback)
"""
from typing import Any


class MarketplaceError(Exception):
    """Base exception for the system."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ):
        self.message = message
        self.code = code or "MARKETPLACE_ERROR"
        self.details = details or {}
        # Extra top-level keys for the JSON body (e.g. a localized reply)
        self.extra: dict[str, Any] = {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "error": self.message,
            "code": self.code,
        }
        if self.details:
            body["details"] = self.details
        body.update(self.extra)
        return body


# ==========================================
# Request errors
# ==========================================

class ValidationError(MarketplaceError):
    """Invalid or missing request data."""

    status_code = 400

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        missing_fields: list[str] | None = None,
    ):
        details: dict[str, Any] = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)[:100]  # Truncate long values
        if missing_fields:
            details["missing_fields"] = missing_fields

        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details=details,
        )
        self.field = field
        self.value = value


class NotFoundError(MarketplaceError):
    """Entity not found in the database."""

    status_code = 404

    def __init__(self, entity: str, entity_id: str | None = None):
        details = {"entity": entity}
        if entity_id:
            details["id"] = str(entity_id)

        super().__init__(
            message=f"{entity} not found",
            code="NOT_FOUND",
            details=details,
        )
        self.entity = entity


class ConfigurationError(MarketplaceError):
    """A required setting (API key, URL) is missing."""

    status_code = 500

    def __init__(self, message: str, setting: str | None = None):
        details = {"setting": setting} if setting else {}
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            details=details,
        )
        self.setting = setting


# ==========================================
# Integration errors
# ==========================================

class IntegrationError(MarketplaceError):
    """Error returned by (or while reaching) an external service."""

    status_code = 500

    def __init__(
        self,
        message: str,
        service: str,
        status_code: int | None = None,
        response: Any = None,
    ):
        details: dict[str, Any] = {"service": service}
        if status_code:
            details["status_code"] = status_code
        if response:
            details["response"] = str(response)[:500]

        super().__init__(
            message=message,
            code="INTEGRATION_ERROR",
            details=details,
        )
        self.service = service
        self.upstream_status = status_code
        self.response = response


class GeminiError(IntegrationError):
    """Gemini API error."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: Any = None,
    ):
        super().__init__(
            message=message,
            service="gemini",
            status_code=status_code,
            response=response,
        )
        self.code = "GEMINI_ERROR"


class OpenAIError(IntegrationError):
    """OpenAI API error."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: Any = None,
    ):
        super().__init__(
            message=message,
            service="openai",
            status_code=status_code,
            response=response,
        )
        self.code = "OPENAI_ERROR"


class GroqError(IntegrationError):
    """Groq API error."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: Any = None,
    ):
        super().__init__(
            message=message,
            service="groq",
            status_code=status_code,
            response=response,
        )
        self.code = "GROQ_ERROR"


class StripeError(IntegrationError):
    """Stripe API error."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: Any = None,
    ):
        super().__init__(
            message=message,
            service="stripe",
            status_code=status_code,
            response=response,
        )
        self.code = "STRIPE_ERROR"


class ResendError(IntegrationError):
    """Resend API error."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: Any = None,
    ):
        super().__init__(
            message=message,
            service="resend",
            status_code=status_code,
            response=response,
        )
        self.code = "RESEND_ERROR"


# ==========================================
# AI output errors
# ==========================================

class AIResponseError(MarketplaceError):
    """AI returned text that is not the JSON we asked for."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(
            message=message,
            code="AI_RESPONSE_ERROR",
            details={"raw_text": raw_text[:200]} if raw_text else {},
        )
        self.raw_text = raw_text
