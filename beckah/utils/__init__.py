"""
Utilities.
"""
from __future__ import annotations

from beckah.utils.text import (
    match_category,
    normalize_text,
    strip_code_fences,
    truncate,
)

__all__ = [
    "match_category",
    "normalize_text",
    "strip_code_fences",
    "truncate",
]
