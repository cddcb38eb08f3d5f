"""
Structured AI output.

Every prompt asks for a JSON-only reply. This module turns the raw reply
into a validated pydantic model, or raises AIResponseError so the caller
can apply its fallback.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from beckah.core.exceptions import AIResponseError
from beckah.utils.text import strip_code_fences

T = TypeVar("T", bound=BaseModel)

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Extract the JSON object from a model reply.

    Args:
        text: Raw model output, optionally wrapped in code fences

    Returns:
        Parsed object

    Raises:
        AIResponseError: no object found, invalid JSON, or not an object
    """
    cleaned = strip_code_fences(text)
    match = _JSON_OBJECT_RE.search(cleaned)
    if not match:
        raise AIResponseError("No JSON object in AI response", raw_text=text or "")

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise AIResponseError(f"Invalid JSON in AI response: {e.msg}", raw_text=text) from e

    if not isinstance(data, dict):
        raise AIResponseError("AI response is not a JSON object", raw_text=text)

    return data


def parse_structured(text: str, model: Type[T]) -> T:
    """Parse a model reply and validate it against `model`."""
    data = extract_json_object(text)
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise AIResponseError(
            f"AI response does not match {model.__name__}: {e.error_count()} error(s)",
            raw_text=text,
        ) from e
