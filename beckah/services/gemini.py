"""
Gemini client (Google Generative Language REST API).
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import structlog

from beckah.config import settings
from beckah.core.exceptions import AIResponseError, GeminiError

logger = structlog.get_logger()


class GeminiClient:
    """Minimal async client for `models/{model}:generateContent`."""

    def __init__(self, api_key: str, base_url: str, timeout: float = 30.0) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def generate(
        self,
        model: str,
        parts: List[Dict[str, Any]],
        *,
        temperature: float = 0.3,
        max_output_tokens: int = 1024,
        top_k: Optional[int] = None,
        top_p: Optional[float] = None,
        json_only: bool = True,
    ) -> str:
        """
        Run a single-turn generation and return the first candidate's text.

        Args:
            model: Model name (e.g. gemini-2.5-flash)
            parts: Content parts (text and/or inlineData)
            json_only: Ask for an application/json reply

        Raises:
            GeminiError: non-2xx response or transport failure
            AIResponseError: response without a text candidate
        """
        generation_config: Dict[str, Any] = {
            "temperature": temperature,
            "maxOutputTokens": max_output_tokens,
        }
        if top_k is not None:
            generation_config["topK"] = top_k
        if top_p is not None:
            generation_config["topP"] = top_p
        if json_only:
            generation_config["responseMimeType"] = "application/json"

        url = f"{self.base_url}/models/{model}:generateContent"
        body = {
            "contents": [{"parts": parts}],
            "generationConfig": generation_config,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                r = await client.post(url, params={"key": self.api_key}, json=body)
        except httpx.HTTPError as e:
            raise GeminiError(f"Gemini request failed: {e}") from e

        logger.debug("gemini_response", model=model, status=r.status_code)

        if r.status_code >= 400:
            raise GeminiError(
                f"Gemini API error: {r.status_code}",
                status_code=r.status_code,
                response=r.text,
            )

        data = r.json()
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise AIResponseError("Gemini response has no text candidate") from e


def get_gemini_client() -> GeminiClient:
    """Build a client from settings (fails per request if the key is missing)."""
    return GeminiClient(
        api_key=settings.require("gemini_api_key"),
        base_url=settings.gemini_base_url,
        timeout=settings.http_timeout_seconds,
    )
