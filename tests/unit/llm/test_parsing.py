from __future__ import annotations

import pytest

from paymind.llm.parsing import (
    FALLBACK_ACTIONS,
    Fallback,
    Structured,
    extract_json_object,
    extract_subject,
    normalize_fields,
    parse_response_analysis,
)
from paymind.models.enums import RiskLevel, Sentiment


def test_prose_without_json_falls_back_with_raw_text_as_draft():
    raw = "Thanks for the reminder, I'll pay next week."

    parsed = parse_response_analysis(raw)

    assert isinstance(parsed, Fallback)
    fields = parsed.fields
    assert fields.intent == "unknown"
    assert fields.intent_confidence == 50
    assert fields.sentiment == Sentiment.NEUTRAL
    assert fields.risk_level == RiskLevel.MEDIUM
    assert fields.extracted_info == []
    assert fields.suggested_actions == list(FALLBACK_ACTIONS)
    assert fields.draft_response == raw


def test_json_inside_prose_and_code_fence_is_extracted():
    text = (
        "Here is the analysis:\n```json\n"
        '{"intent": "payment_promise", "intentConfidence": 92, "sentiment": "positive", '
        '"extractedInfo": [{"label": "date", "value": "Friday"}], '
        '"suggestedActions": ["Confirm receipt"], "draftResponse": "Thank you!", "riskLevel": "low"}'
        "\n```\nLet me know if you need more."
    )

    parsed = parse_response_analysis(text)

    assert isinstance(parsed, Structured)
    fields = parsed.fields
    assert fields.intent == "payment_promise"
    assert fields.intent_confidence == 92
    assert fields.sentiment == Sentiment.POSITIVE
    assert [(item.label, item.value) for item in fields.extracted_info] == [("date", "Friday")]
    assert fields.suggested_actions == ["Confirm receipt"]
    assert fields.draft_response == "Thank you!"
    assert fields.risk_level == RiskLevel.LOW


def test_braces_inside_strings_do_not_break_extraction():
    text = 'Result: {"intent": "dispute", "draftResponse": "We saw {the} issue \\" ok"} trailing }'
    assert extract_json_object(text) == {"intent": "dispute", "draftResponse": 'We saw {the} issue " ok'}


def test_first_parseable_object_wins():
    text = "Ignore {not json} then {\"intent\": \"request_info\"} and {\"intent\": \"other\"}"
    assert extract_json_object(text) == {"intent": "request_info"}


def test_unclosed_brace_before_object_is_skipped():
    text = (
        'Note: the customer wrote "{see attachment" earlier.\n'
        "Analysis { draft below\n"
        '{"intent": "promise_to_pay", "riskLevel": "low"}\n'
        "Thanks"
    )

    assert extract_json_object(text) == {"intent": "promise_to_pay", "riskLevel": "low"}
    result = parse_response_analysis(text)
    assert isinstance(result, Structured)
    assert result.fields.risk_level == RiskLevel.LOW


@pytest.mark.parametrize("text", [None, "", "no braces", "{unterminated", "[1, 2, 3]"])
def test_no_object_found(text):
    assert extract_json_object(text) is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(150, 100), (-5, 0), ("85%", 85), ("high", 50), (True, 50), (float("nan"), 50), (72.6, 73)],
)
def test_confidence_is_clamped_to_range(raw, expected):
    assert normalize_fields({"intentConfidence": raw}).intent_confidence == expected


def test_unknown_enum_values_use_neutral_defaults():
    fields = normalize_fields({"sentiment": "furious", "riskLevel": "extreme", "intent": "  "})
    assert fields.sentiment == Sentiment.NEUTRAL
    assert fields.risk_level == RiskLevel.MEDIUM
    assert fields.intent == "unknown"


def test_snake_case_keys_and_loose_shapes_are_accepted():
    fields = normalize_fields(
        {
            "intent": "request_delay",
            "intent_confidence": "60",
            "sentiment": "NEGATIVE",
            "extracted_info": {"new_date": "2026-05-01", "amount": 300},
            "suggested_actions": "Offer a payment plan",
            "draft_response": "We can discuss a plan.",
            "risk_level": "High",
        }
    )

    assert fields.intent_confidence == 60
    assert fields.sentiment == Sentiment.NEGATIVE
    assert [(item.label, item.value) for item in fields.extracted_info] == [
        ("new_date", "2026-05-01"),
        ("amount", "300"),
    ]
    assert fields.suggested_actions == ["Offer a payment plan"]
    assert fields.risk_level == RiskLevel.HIGH


def test_extracted_info_accepts_single_key_dicts_and_scalars():
    fields = normalize_fields({"extractedInfo": [{"date": "Monday"}, "wire transfer", None]})
    assert [(item.label, item.value) for item in fields.extracted_info] == [
        ("date", "Monday"),
        ("", "wire transfer"),
    ]


def test_structured_result_with_missing_fields_uses_defaults():
    parsed = parse_response_analysis('{"intent": "already_paid"}')
    assert isinstance(parsed, Structured)
    assert parsed.fields.intent == "already_paid"
    assert parsed.fields.intent_confidence == 50
    assert parsed.fields.suggested_actions == []
    assert parsed.fields.draft_response == ""


@pytest.mark.parametrize(
    "content",
    [
        "Subject: Payment reminder INV-1\n\nDear customer,\nplease pay.",
        "**Subject:** Payment reminder INV-1\n\nDear customer,\nplease pay.",
        "Oggetto: Payment reminder INV-1\n\nDear customer,\nplease pay.",
    ],
)
def test_subject_line_is_split_from_email_body(content):
    subject, body = extract_subject(content)
    assert subject == "Payment reminder INV-1"
    assert body == "Dear customer,\nplease pay."


def test_content_without_subject_line_is_kept_whole():
    subject, body = extract_subject("  Dear customer, please pay.  ")
    assert subject is None
    assert body == "Dear customer, please pay."
