"""
Listing assistant: guides a seller through the listing wizard.

The chat model is asked for a JSON reply (text + optional structured
suggestions). The wizard, not the model, decides the next step.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import structlog

from beckah.config import settings
from beckah.core.exceptions import AIResponseError, IntegrationError
from beckah.core.schemas import AssistantReply, AssistantRequest
from beckah.core.wizard import WIZARD, WizardStep, get_context_for_prompt, next_step
from beckah.services.llm import chat_completion, get_openai_client
from beckah.services.structured import parse_structured

logger = structlog.get_logger()

# Shown to the seller when the assistant cannot answer
APOLOGY_REPLY = "عذراً، حدث خطأ. يرجى المحاولة مرة أخرى."

SYSTEM_PROMPT = """You are a friendly assistant that helps sellers list products on a charity marketplace.

The platform exists to help people in need. The seller has three options:
1. Donation - the best choice: give the product away for free to someone who needs it
2. Symbolic sale - sell it for a symbolic price ($1-$5) that supports the platform
3. Public sale - sell it at market price

Your role:
- Gently encourage donation or a symbolic sale, never pushy
- Explain the positive impact a donation has
- If the seller chooses a public sale, respect the decision

Steps of the conversation:
{steps}

Current step: {current_step}
What to do now: {hint}
Product data collected so far: {product_data}

Style: warm, motivating, short and clear. Reply in the seller's language (Arabic by default).

Respond ONLY with a JSON object:
{{
  "reply": "<your message to the seller>",
  "suggested_title": "<title suggestion or null>",
  "recommend_donation": <true/false or null>,
  "suggested_price": <number or null>,
  "suggested_description": "<description suggestion or null>"
}}"""


def build_system_prompt(step: WizardStep, product_data: Optional[Dict[str, Any]]) -> str:
    steps = "\n".join(f"- {s.value}: {req.agent_hint}" for s, req in WIZARD.items())
    context = get_context_for_prompt(step)
    return SYSTEM_PROMPT.format(
        steps=steps,
        current_step=context["current_step"],
        hint=context["hint"],
        product_data=json.dumps(product_data or {}, ensure_ascii=False),
    )


def build_suggestions(
    step: WizardStep,
    reply: Optional[AssistantReply],
    product_data: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    """Pick the suggestion that belongs to the current step."""
    if reply is None:
        return {}

    key = WIZARD[step].suggestion
    if key == "suggestedTitle":
        if not (product_data or {}).get("category"):
            return {}
        return {key: reply.suggested_title}
    if key == "recommendDonation":
        return {key: bool(reply.recommend_donation)}
    if key == "suggestedPrice":
        return {key: reply.suggested_price}
    if key == "suggestedDescription":
        return {key: reply.suggested_description}
    return {}


async def run_assistant(request: AssistantRequest) -> Dict[str, Any]:
    """
    Produce the assistant's reply for one seller message.

    Returns:
        {"response", "suggestions", "nextStep"}

    Raises:
        IntegrationError: OpenAI failed (carries a localized `response`)
        AIResponseError: OpenAI returned an empty completion
    """
    step = request.current_step
    messages: List[Dict[str, Any]] = [
        {"role": "system", "content": build_system_prompt(step, request.product_data)},
        *[m.model_dump() for m in request.conversation_history],
        {"role": "user", "content": request.message},
    ]

    client = get_openai_client()
    try:
        text = await chat_completion(
            client,
            model=settings.openai_model,
            messages=messages,
            temperature=settings.assistant_temperature,
            max_tokens=settings.assistant_max_tokens,
            json_only=True,
        )
    except (IntegrationError, AIResponseError) as e:
        e.extra["response"] = APOLOGY_REPLY
        raise

    reply: Optional[AssistantReply]
    try:
        reply = parse_structured(text, AssistantReply)
        response_text = reply.reply
    except AIResponseError as e:
        logger.warning("assistant_unstructured_reply", error=e.message, step=step.value)
        reply = None
        response_text = text

    following = next_step(step, request.message)
    logger.info("assistant_reply", step=step.value, next_step=following.value)

    return {
        "response": response_text,
        "suggestions": build_suggestions(step, reply, request.product_data),
        "nextStep": following.value,
    }
