"""
Moderation Gate - keyword screen for product submissions.

Every submission's free text (title, description, category name) is
case-folded and scanned for prohibited-item keywords before any AI
pricing or auto-publishing happens.

Matching is plain substring containment: no stemming, no tokenisation.
"beerbottle" matches "beer" and "gun" matches inside longer words; those
false positives end up in manual review, which is the accepted behaviour.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, Iterable, Optional, Tuple

import structlog

logger = structlog.get_logger()


# Weapons, drugs, alcohol, tobacco, counterfeit goods
PROHIBITED_KEYWORDS: Tuple[str, ...] = (
    # Weapons
    "weapon", "gun", "rifle", "firearm", "ammunition", "explosive",
    # Drugs
    "drug", "narcotic", "marijuana", "cocaine", "heroin",
    # Alcohol
    "alcohol", "beer", "wine", "liquor", "vodka", "whiskey",
    # Tobacco
    "cigarette", "tobacco", "vape",
    # Counterfeit
    "counterfeit", "fake", "replica",
)

FLAGGED_REASON = "Product contains prohibited items and requires admin review"


@dataclass(frozen=True)
class ModerationVerdict:
    """Outcome of screening one submission."""

    approved: bool
    requires_manual_review: bool
    # Matched denylist terms, unique, in denylist order
    flagged_keywords: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def reason(self) -> Optional[str]:
        if self.approved:
            return None
        return FLAGGED_REASON

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "approved": self.approved,
            "requires_manual_review": self.requires_manual_review,
        }
        if not self.approved:
            data["reason"] = self.reason
            data["flagged_keywords"] = list(self.flagged_keywords)
        return data


class ModerationGate:
    """Denylist screen owning an immutable keyword list."""

    def __init__(self, extra_keywords: Iterable[str] = ()):
        keywords = list(PROHIBITED_KEYWORDS)
        for keyword in extra_keywords:
            keyword = keyword.strip().lower()
            if keyword and keyword not in keywords:
                keywords.append(keyword)
        self._keywords: Tuple[str, ...] = tuple(keywords)

    @property
    def keywords(self) -> Tuple[str, ...]:
        return self._keywords

    @staticmethod
    def build_text(
        title: Optional[str],
        description: Optional[str],
        category: Optional[str],
    ) -> str:
        """Concatenate and case-fold the fields that get screened."""
        return f"{title or ''} {description or ''} {category or ''}".lower()

    def evaluate(self, text: str) -> ModerationVerdict:
        """
        Screen a block of text.

        Args:
            text: Text to screen (case-folded here as well)

        Returns:
            Verdict; any keyword hit means manual review
        """
        content = (text or "").lower()
        flagged = tuple(keyword for keyword in self._keywords if keyword in content)

        if flagged:
            logger.info("moderation_flagged", flagged_keywords=list(flagged))
            return ModerationVerdict(
                approved=False,
                requires_manual_review=True,
                flagged_keywords=flagged,
            )

        return ModerationVerdict(approved=True, requires_manual_review=False)

    def evaluate_submission(
        self,
        title: Optional[str],
        description: Optional[str],
        category: Optional[str],
    ) -> ModerationVerdict:
        """Screen a submission's title, description and category name."""
        return self.evaluate(self.build_text(title, description, category))


@lru_cache
def get_moderation_gate() -> ModerationGate:
    """Gate singleton, built once from settings."""
    from beckah.config import settings

    return ModerationGate(extra_keywords=settings.moderation_extra_keywords)
