"""
Chat-completion access for OpenAI and Groq (OpenAI-compatible API).
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Type

import openai
import structlog
from openai import AsyncOpenAI

from beckah.config import settings
from beckah.core.exceptions import AIResponseError, IntegrationError, OpenAIError

logger = structlog.get_logger()


def get_openai_client() -> AsyncOpenAI:
    return AsyncOpenAI(
        api_key=settings.require("openai_api_key"),
        timeout=settings.http_timeout_seconds,
        max_retries=0,
    )


def get_groq_client() -> AsyncOpenAI:
    return AsyncOpenAI(
        api_key=settings.require("groq_api_key"),
        base_url=settings.groq_base_url,
        timeout=settings.http_timeout_seconds,
        max_retries=0,
    )


async def chat_completion(
    client: AsyncOpenAI,
    *,
    model: str,
    messages: List[Dict[str, Any]],
    temperature: float,
    max_tokens: int,
    json_only: bool = False,
    error_cls: Type[IntegrationError] = OpenAIError,
) -> str:
    """
    Run a chat completion and return the first choice's content.

    Args:
        client: OpenAI-compatible async client
        model: Model name
        messages: Chat messages (content may be a list of parts for vision)
        json_only: Request `response_format={"type": "json_object"}`
        error_cls: IntegrationError subclass raised on API failure

    Raises:
        IntegrationError: API error or connection failure
        AIResponseError: empty completion
    """
    kwargs: Dict[str, Any] = {}
    if json_only:
        kwargs["response_format"] = {"type": "json_object"}

    try:
        completion = await client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )
    except openai.APIStatusError as e:
        raise error_cls(
            f"{model} API error: {e.status_code}",
            status_code=e.status_code,
            response=e.message,
        ) from e
    except openai.APIError as e:
        raise error_cls(f"{model} request failed: {e}") from e

    content: Optional[str] = None
    if completion.choices:
        content = completion.choices[0].message.content

    if not content:
        raise AIResponseError("Empty completion")

    logger.debug("chat_completion_done", model=model, length=len(content))
    return content
