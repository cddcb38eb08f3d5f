"""
Step sequencer for the guided product-listing conversation.

The wizard guarantees that:
- The assistant always knows which stage the seller is in
- Steps only move forward, one at a time
- Donation/free intent at `submission_type` skips the price step
- `review` is terminal and absorbing

The sequencer is pure: the caller persists the returned step.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class WizardStep(str, Enum):
    """Stages of the listing conversation, in order.

    Typical flow:
    START → CATEGORY → TITLE → CONDITION → SUBMISSION_TYPE → PRICE
    → DESCRIPTION → IMAGES → REVIEW

    Shortcut:
    - SUBMISSION_TYPE → DESCRIPTION when the seller donates / gives away
    """

    START = "start"
    CATEGORY = "category"
    TITLE = "title"
    CONDITION = "condition"
    SUBMISSION_TYPE = "submission_type"
    PRICE = "price"
    DESCRIPTION = "description"
    IMAGES = "images"
    REVIEW = "review"


# Declaration order of the enum is the wizard order
STEP_ORDER: Tuple[WizardStep, ...] = tuple(WizardStep)

# Substrings signalling "I want to donate / give it for free"
DONATION_MARKERS: Tuple[str, ...] = (
    "تبرع",
    "مجان",
    "donate",
    "donation",
    "free",
)


@dataclass(frozen=True)
class StepRequirements:
    """Metadata for a wizard step."""

    # What the assistant should do at this step
    agent_hint: str = ""

    # Suggestion key the assistant returns at this step (None = no suggestion)
    suggestion: Optional[str] = None

    # Whether the conversation ends here
    is_terminal: bool = False


WIZARD: Dict[WizardStep, StepRequirements] = {

    WizardStep.START: StepRequirements(
        agent_hint=(
            "Welcome the seller, mention this is a charity platform and ask "
            "what kind of product they want to list."
        ),
    ),

    WizardStep.CATEGORY: StepRequirements(
        agent_hint="Help the seller pick the most fitting category.",
    ),

    WizardStep.TITLE: StepRequirements(
        agent_hint="Suggest a clear, attractive title for the product.",
        suggestion="suggestedTitle",
    ),

    WizardStep.CONDITION: StepRequirements(
        agent_hint="Ask about the condition of the product.",
    ),

    WizardStep.SUBMISSION_TYPE: StepRequirements(
        agent_hint=(
            "Important step. Explain the three options (donation, symbolic "
            "sale at $1-$5, public sale) and gently encourage donation or a "
            "symbolic sale."
        ),
        suggestion="recommendDonation",
    ),

    WizardStep.PRICE: StepRequirements(
        agent_hint="If the seller is selling, help them choose a fair price.",
        suggestion="suggestedPrice",
    ),

    WizardStep.DESCRIPTION: StepRequirements(
        agent_hint="Help the seller write a professional description.",
        suggestion="suggestedDescription",
    ),

    WizardStep.IMAGES: StepRequirements(
        agent_hint="Ask the seller for photos of the product.",
    ),

    WizardStep.REVIEW: StepRequirements(
        agent_hint="Review the collected information and thank the seller for contributing.",
        is_terminal=True,
    ),
}


def has_donation_intent(message: str) -> bool:
    """Check whether a message signals a donation or free give-away."""
    lowered = (message or "").lower()
    return any(marker in lowered for marker in DONATION_MARKERS)


def next_step(current: WizardStep | str, user_message: str) -> WizardStep:
    """
    Decide the step that follows `current`.

    Args:
        current: Current wizard step (enum or its string value)
        user_message: The seller's latest message

    Returns:
        The next step; `review` maps to itself

    Raises:
        ValueError: if `current` is not a known step
    """
    current = WizardStep(current)

    if current == WizardStep.SUBMISSION_TYPE and has_donation_intent(user_message):
        return WizardStep.DESCRIPTION

    index = STEP_ORDER.index(current)
    if index < len(STEP_ORDER) - 1:
        return STEP_ORDER[index + 1]

    return WizardStep.REVIEW


def get_context_for_prompt(step: WizardStep) -> Dict[str, Any]:
    """Return the step context to include in the assistant prompt."""
    requirements = WIZARD[step]
    return {
        "current_step": step.value,
        "hint": requirements.agent_hint,
        "is_terminal": requirements.is_terminal,
    }


def get_step_display_name(step: WizardStep) -> str:
    """Friendly step name for logs/debug."""
    names = {
        WizardStep.START: "Welcome",
        WizardStep.CATEGORY: "Category",
        WizardStep.TITLE: "Title",
        WizardStep.CONDITION: "Condition",
        WizardStep.SUBMISSION_TYPE: "Submission Type",
        WizardStep.PRICE: "Price",
        WizardStep.DESCRIPTION: "Description",
        WizardStep.IMAGES: "Images",
        WizardStep.REVIEW: "Review",
    }
    return names.get(step, step.value)
