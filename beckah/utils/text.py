"""
Text helpers.
"""
from __future__ import annotations

import re
from typing import Optional, Sequence

from rapidfuzz import fuzz, process
from unidecode import unidecode

_CODE_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)

# Minimum WRatio (0-100) for an AI category name to count as a canonical one
CATEGORY_MATCH_SCORE = 80


def normalize_text(text: str) -> str:
    """
    Fold text for comparison: ASCII transliteration, lowercase, single
    spaces, no surrounding punctuation.

    "  Café & Décor! " -> "cafe & decor"
    """
    if not text:
        return ""
    folded = " ".join(unidecode(text).lower().split())
    return folded.strip(".,!?;:\"'")


def truncate(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """Cut `text` to `max_length` characters for log fields."""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(suffix)] + suffix


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences (```json ... ```) around model output."""
    return _CODE_FENCE_RE.sub("", text or "").strip()


def match_category(name: str, categories: Sequence[str]) -> Optional[str]:
    """
    Map a free-form category name onto one of `categories`.

    Returns the canonical name, or None when nothing scores at least
    CATEGORY_MATCH_SCORE.
    """
    if not name or not categories:
        return None

    result = process.extractOne(
        name,
        categories,
        scorer=fuzz.WRatio,
        processor=normalize_text,
        score_cutoff=CATEGORY_MATCH_SCORE,
    )
    return result[0] if result else None
