from unittest.mock import AsyncMock, patch

import pytest

from beckah.core.exceptions import OpenAIError
from beckah.core.schemas import AssistantReply, AssistantRequest
from beckah.core.wizard import WizardStep
from beckah.services.assistant import (
    APOLOGY_REPLY,
    build_suggestions,
    build_system_prompt,
    run_assistant,
)


def make_request(step, message="hello", **extra):
    return AssistantRequest(message=message, currentStep=step, **extra)


# ----------------------------------------------------------------------
# suggestions
# ----------------------------------------------------------------------
def test_title_suggestion_needs_category():
    reply = AssistantReply(reply="ok", suggested_title="Oak chair")

    assert build_suggestions(WizardStep.TITLE, reply, {}) == {}
    assert build_suggestions(WizardStep.TITLE, reply, {"category": "Furniture"}) == {
        "suggestedTitle": "Oak chair"
    }


def test_submission_type_always_gives_a_boolean():
    reply = AssistantReply(reply="ok")

    assert build_suggestions(WizardStep.SUBMISSION_TYPE, reply, None) == {"recommendDonation": False}


def test_price_and_description_suggestions():
    reply = AssistantReply(reply="ok", suggested_price=4, suggested_description="Solid oak")

    assert build_suggestions(WizardStep.PRICE, reply, None) == {"suggestedPrice": 4}
    assert build_suggestions(WizardStep.DESCRIPTION, reply, None) == {"suggestedDescription": "Solid oak"}


def test_steps_without_suggestions():
    reply = AssistantReply(reply="ok", suggested_title="x")

    assert build_suggestions(WizardStep.START, reply, {"category": "x"}) == {}
    assert build_suggestions(WizardStep.TITLE, None, {"category": "x"}) == {}


def test_system_prompt_mentions_step_and_product_data():
    prompt = build_system_prompt(WizardStep.PRICE, {"title": "كرسي"})

    assert "Current step: price" in prompt
    assert "كرسي" in prompt


# ----------------------------------------------------------------------
# run_assistant
# ----------------------------------------------------------------------
@pytest.mark.asyncio
async def test_structured_reply(configured):
    reply = '{"reply": "Great choice!", "recommend_donation": true}'
    completion = AsyncMock(return_value=reply)
    request = make_request(
        "submission_type",
        "I want to donate it",
        conversationHistory=[{"role": "assistant", "content": "Sell or donate?"}],
    )

    with patch("beckah.services.assistant.chat_completion", completion):
        result = await run_assistant(request)

    assert result == {
        "response": "Great choice!",
        "suggestions": {"recommendDonation": True},
        "nextStep": "description",
    }
    messages = completion.call_args.kwargs["messages"]
    assert messages[0]["role"] == "system"
    assert messages[1] == {"role": "assistant", "content": "Sell or donate?"}
    assert messages[-1] == {"role": "user", "content": "I want to donate it"}


@pytest.mark.asyncio
async def test_plain_text_reply_is_passed_through(configured):
    with patch("beckah.services.assistant.chat_completion", AsyncMock(return_value="Just text")):
        result = await run_assistant(make_request("price"))

    assert result == {"response": "Just text", "suggestions": {}, "nextStep": "description"}


@pytest.mark.asyncio
async def test_upstream_failure_carries_apology(configured):
    error = OpenAIError("gpt-4o-mini API error: 500", status_code=500)
    with patch("beckah.services.assistant.chat_completion", AsyncMock(side_effect=error)):
        with pytest.raises(OpenAIError) as exc:
            await run_assistant(make_request("start"))

    assert exc.value.to_dict()["response"] == APOLOGY_REPLY
