"""
Pydantic schemas for request bodies and AI output.

AI providers are asked for JSON only; their replies are validated against
these models, and anything that does not fit is replaced by a documented
fallback instead of leaking malformed data to the client.
"""
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from beckah.core.wizard import WizardStep


class CamelModel(BaseModel):
    """Accepts both camelCase aliases and snake_case names."""

    model_config = ConfigDict(populate_by_name=True)


# ============================================
# ENUMS
# ============================================

class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ProductCondition(str, Enum):
    BRAND_NEW = "Brand New"
    LIKE_NEW = "Like New"
    GOOD = "Good"
    FAIR = "Fair"


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    SYSTEM = "system"


# ============================================
# SUBMISSIONS / MODERATION
# ============================================

class AutoValidateRequest(BaseModel):
    """Submission text screened by the moderation gate before pricing."""

    submission_id: str = Field(..., min_length=1)
    title: str
    description: str
    category: str = ""
    images: list[str] = Field(default_factory=list)
    user_price: float | None = Field(default=None, ge=0)


class ProcessSubmissionRequest(BaseModel):
    submission_id: str = Field(..., min_length=1)


class PricingSuggestion(BaseModel):
    """AI price suggestion for a submission."""

    suggested_price: float = Field(..., ge=0)
    reasoning: str = ""
    confidence: Confidence = Confidence.MEDIUM

    @field_validator("confidence", mode="before")
    @classmethod
    def lower_confidence(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v


class Notification(BaseModel):
    """Row for the `notifications` table."""

    user_id: str
    type: NotificationType
    title: str
    message: str
    link: str = "/dashboard"


# ============================================
# LISTING ASSISTANT
# ============================================

class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class AssistantRequest(CamelModel):
    message: str = Field(..., min_length=1)
    conversation_history: list[ChatMessage] = Field(default_factory=list, alias="conversationHistory")
    current_step: WizardStep = Field(..., alias="currentStep")
    product_data: dict[str, Any] | None = Field(default=None, alias="productData")


class AssistantReply(BaseModel):
    """JSON reply the chat model is instructed to produce."""

    reply: str = Field(..., min_length=1)
    suggested_title: str | None = None
    recommend_donation: bool | None = None
    suggested_price: float | None = Field(default=None, ge=0)
    suggested_description: str | None = None


# ============================================
# IMAGE ANALYSIS
# ============================================

class ImageAnalysisRequest(CamelModel):
    image_url: str | None = Field(default=None, alias="imageUrl")
    image_base64: str | None = Field(default=None, alias="imageBase64")
    mime_type: str | None = Field(default=None, alias="mimeType")


def _as_list(v: Any) -> Any:
    if v is None:
        return []
    if isinstance(v, str):
        return [v] if v.strip() else []
    if isinstance(v, (list, tuple)):
        return [item if isinstance(item, str) else str(item) for item in v if item is not None]
    return [str(v)]


def _as_text(v: Any) -> Any:
    if v is None:
        return ""
    if isinstance(v, (list, tuple)):
        return ", ".join(str(item) for item in v if item is not None)
    return v if isinstance(v, str) else str(v)


class ProductAnalysis(CamelModel):
    """Product details extracted from a photo."""

    product_name: str = Field(default="Unknown Product", alias="productName")
    description: str = ""
    features: list[str] = Field(default_factory=list)
    material: str = ""
    target_audience: str = Field(default="", alias="targetAudience")
    suggested_categories: list[str] = Field(default_factory=list, alias="suggestedCategories")
    colors: list[str] = Field(default_factory=list)
    brand_info: str = Field(default="", alias="brandInfo")
    tags: list[str] = Field(default_factory=list)

    @field_validator("features", "suggested_categories", "colors", "tags", mode="before")
    @classmethod
    def coerce_list(cls, v: Any) -> Any:
        return _as_list(v)

    @field_validator("description", "material", "target_audience", "brand_info", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _as_text(v)

    @classmethod
    def unknown(cls, raw_text: str = "") -> "ProductAnalysis":
        """Fallback when the model reply cannot be parsed."""
        return cls(description=raw_text or "Could not analyze product")

    def to_response(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


# ============================================
# TEXT ANALYSIS
# ============================================

class DescriptionAnalysisRequest(BaseModel):
    description: str

    @field_validator("description")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("A product description is required")
        return v


class PriceSuggestions(BaseModel):
    symbolic: float
    fair: float
    market: float


DEFAULT_PRICE_SUGGESTIONS = PriceSuggestions(symbolic=2, fair=15, market=30)
DEFAULT_CHARITY_MESSAGE = "💚 Your donation will help a family in need"


class DescriptionAnalysis(CamelModel):
    """Listing draft generated from a free-text description."""

    product_name: str = Field(..., min_length=1, alias="productName")
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    condition: ProductCondition = ProductCondition.LIKE_NEW
    price_suggestions: PriceSuggestions = Field(
        default_factory=lambda: DEFAULT_PRICE_SUGGESTIONS.model_copy(),
        alias="priceSuggestions",
    )
    charity_message: str = Field(default=DEFAULT_CHARITY_MESSAGE, alias="charityMessage")
    confidence: float = 0.8

    @field_validator("condition", mode="before")
    @classmethod
    def default_condition(cls, v: Any) -> Any:
        valid = {c.value for c in ProductCondition}
        return v if v in valid else ProductCondition.LIKE_NEW

    @field_validator("price_suggestions", mode="before")
    @classmethod
    def default_prices(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return DEFAULT_PRICE_SUGGESTIONS.model_copy()
        numbers = (int, float)
        keys = ("symbolic", "fair", "market")
        if not all(isinstance(v.get(k), numbers) and not isinstance(v.get(k), bool) for k in keys):
            return DEFAULT_PRICE_SUGGESTIONS.model_copy()
        return v

    @field_validator("charity_message", mode="before")
    @classmethod
    def default_message(cls, v: Any) -> Any:
        return v or DEFAULT_CHARITY_MESSAGE

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v: Any) -> float:
        try:
            value = float(v)
        except (TypeError, ValueError):
            return 0.8
        return min(max(value, 0.0), 1.0)

    def to_response(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ============================================
# PAYMENTS
# ============================================

class PaymentIntentRequest(CamelModel):
    amount: float = Field(..., gt=0)
    order_id: str = Field(..., min_length=1, alias="orderId")


# ============================================
# EMAIL
# ============================================

class SendEmailRequest(CamelModel):
    to: str = Field(..., min_length=3)
    subject: str = Field(..., min_length=1)
    html: str = Field(..., min_length=1)
    user_id: str | None = Field(default=None, alias="userId")
    email_type: str | None = Field(default=None, alias="emailType")
    metadata: dict[str, Any] = Field(default_factory=dict)


class WelcomeEmailRequest(CamelModel):
    user_id: str = Field(..., min_length=1, alias="userId")
    email: str = Field(..., min_length=3)
    full_name: str | None = Field(default=None, alias="fullName")


class OrderEmailRequest(CamelModel):
    order_id: str = Field(..., min_length=1, alias="orderId")


class OrderStatusUpdateRequest(CamelModel):
    order_id: str = Field(..., min_length=1, alias="orderId")
    update_type: str = Field(..., min_length=1, alias="updateType")
    new_status: str | None = Field(default=None, alias="newStatus")
    new_payment_status: str | None = Field(default=None, alias="newPaymentStatus")


class ReviewRequestEmailRequest(CamelModel):
    order_id: str = Field(..., min_length=1, alias="orderId")
    product_id: str = Field(..., min_length=1, alias="productId")


class UserEmailRequest(CamelModel):
    user_id: str = Field(..., min_length=1, alias="userId")


class ProductStatusEmailRequest(CamelModel):
    submission_id: str = Field(..., min_length=1, alias="submissionId")
    status: Literal["approved", "rejected"]
    rejection_reason: str | None = Field(default=None, alias="rejectionReason")
    admin_notes: str | None = Field(default=None, alias="adminNotes")
    final_price: float | None = Field(default=None, alias="finalPrice")
    product_id: str | None = Field(default=None, alias="productId")


class SubmissionEmailRequest(CamelModel):
    submission_id: str = Field(..., min_length=1, alias="submissionId")
