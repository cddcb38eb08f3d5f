import pytest

from beckah.core.exceptions import AIResponseError
from beckah.core.schemas import AssistantReply, PricingSuggestion
from beckah.services.structured import extract_json_object, parse_structured


def test_plain_json():
    assert extract_json_object('{"a": 1}') == {"a": 1}


def test_code_fences_and_chatter_are_stripped():
    text = 'Sure! Here it is:\n```json\n{"suggested_price": 25, "confidence": "High"}\n```'

    pricing = parse_structured(text, PricingSuggestion)

    assert pricing.suggested_price == 25
    assert pricing.confidence.value == "high"


@pytest.mark.parametrize("text", ["", "no json here", "{not: valid}", None])
def test_unparsable_text_raises(text):
    with pytest.raises(AIResponseError):
        extract_json_object(text)


def test_schema_mismatch_raises():
    with pytest.raises(AIResponseError) as exc:
        parse_structured('{"suggested_price": -3}', PricingSuggestion)

    assert "PricingSuggestion" in exc.value.message


def test_optional_fields_default_to_none():
    reply = parse_structured('{"reply": "Hello"}', AssistantReply)

    assert reply.reply == "Hello"
    assert reply.suggested_title is None
    assert reply.recommend_donation is None
