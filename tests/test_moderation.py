import pytest

from beckah.core.moderation import (
    FLAGGED_REASON,
    PROHIBITED_KEYWORDS,
    ModerationGate,
)


@pytest.fixture
def gate():
    return ModerationGate()


def test_clean_submission_is_approved(gate):
    verdict = gate.evaluate_submission("Wooden chair", "Solid oak, lightly used", "Furniture")

    assert verdict.approved
    assert not verdict.requires_manual_review
    assert verdict.flagged_keywords == ()
    assert verdict.reason is None
    assert verdict.to_dict() == {"approved": True, "requires_manual_review": False}


def test_prohibited_keyword_requires_review(gate):
    verdict = gate.evaluate_submission("Hunting RIFLE", "includes ammunition", "Sports")

    assert not verdict.approved
    assert verdict.requires_manual_review
    assert verdict.flagged_keywords == ("rifle", "ammunition")
    assert verdict.to_dict() == {
        "approved": False,
        "requires_manual_review": True,
        "reason": FLAGGED_REASON,
        "flagged_keywords": ["rifle", "ammunition"],
    }


def test_flagged_keywords_follow_denylist_order_without_duplicates(gate):
    verdict = gate.evaluate("wine and beer, more beer, a gun")

    assert verdict.flagged_keywords == ("gun", "beer", "wine")


def test_category_is_screened(gate):
    verdict = gate.evaluate_submission("Bottle set", "", "Wine accessories")

    assert verdict.flagged_keywords == ("wine",)


def test_substring_matches_inside_words(gate):
    # Accepted false positive: "beerbottle" and "shotgun" still match
    assert gate.evaluate("beerbottle opener").flagged_keywords == ("beer",)
    assert "gun" in gate.evaluate("shotgun shells").flagged_keywords


def test_missing_fields_are_treated_as_empty(gate):
    assert gate.evaluate_submission(None, None, None).approved
    assert gate.evaluate("").approved


def test_denylist_has_expected_terms():
    assert len(PROHIBITED_KEYWORDS) == 23
    assert "counterfeit" in PROHIBITED_KEYWORDS
    assert "vape" in PROHIBITED_KEYWORDS


def test_extra_keywords_extend_without_duplicates():
    gate = ModerationGate(extra_keywords=["  Knife ", "gun", ""])

    assert gate.keywords[-1] == "knife"
    assert gate.keywords.count("gun") == 1
    assert gate.evaluate("kitchen knife").flagged_keywords == ("knife",)
