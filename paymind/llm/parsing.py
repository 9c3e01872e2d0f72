"""Parsing of free-text model output into typed results."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Union

from paymind.models.enums import RiskLevel, Sentiment
from paymind.schemas.agents import ExtractedInfo, ResponseAnalysisFields

FALLBACK_ACTIONS = ("Review response manually",)

_SUBJECT_LINE = re.compile(
    r"^[ \t]*(?:\*\*)?(?:subject|oggetto)(?:\*\*)?[ \t]*:[ \t]*(?:\*\*)?[ \t]*(?P<subject>.+?)[ \t]*(?:\*\*)?[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)


@dataclass(frozen=True)
class Structured:
    """Model output carried a JSON object that was normalized into fields."""

    fields: ResponseAnalysisFields
    raw_text: str


@dataclass(frozen=True)
class Fallback:
    """Model output had no usable JSON object."""

    raw_text: str

    @property
    def fields(self) -> ResponseAnalysisFields:
        return fallback_fields(self.raw_text)


ParsedResponse = Union[Structured, Fallback]


def _balanced_span(text: str, start: int) -> str | None:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def extract_json_object(text: str | None) -> dict[str, Any] | None:
    """Return the first balanced ``{...}`` span in ``text`` that parses as a JSON object."""
    if not text:
        return None
    start = text.find("{")
    while start != -1:
        span = _balanced_span(text, start)
        if span is None:
            start = text.find("{", start + 1)
            continue
        try:
            value = json.loads(span)
        except ValueError:
            value = None
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    return None


def fallback_fields(raw_text: str) -> ResponseAnalysisFields:
    return ResponseAnalysisFields(
        intent="unknown",
        intent_confidence=50,
        sentiment=Sentiment.NEUTRAL,
        extracted_info=[],
        suggested_actions=list(FALLBACK_ACTIONS),
        draft_response=raw_text,
        risk_level=RiskLevel.MEDIUM,
    )


def _pick(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _confidence(value: Any) -> int:
    if isinstance(value, bool):
        return 50
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 50
    if number != number:
        return 50
    return max(0, min(100, int(round(number))))


def _enum_value(enum_cls, value: Any, default):
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return default


def _extracted_info(value: Any) -> list[ExtractedInfo]:
    if isinstance(value, dict):
        return [ExtractedInfo(label=str(k), value=str(v)) for k, v in value.items()]
    if not isinstance(value, list):
        return []
    items = []
    for entry in value:
        if isinstance(entry, dict):
            label = entry.get("label")
            if label is None and len(entry) == 1:
                label, item_value = next(iter(entry.items()))
            else:
                item_value = entry.get("value", "")
            items.append(ExtractedInfo(label=str(label or ""), value=str(item_value)))
        elif entry is not None:
            items.append(ExtractedInfo(label="", value=str(entry)))
    return items


def _actions(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(item) for item in value if item is not None and str(item).strip()]
    return []


def normalize_fields(data: dict[str, Any]) -> ResponseAnalysisFields:
    """Coerce a loosely-shaped JSON object into analysis fields."""
    intent = _pick(data, "intent")
    draft = _pick(data, "draftResponse", "draft_response")
    return ResponseAnalysisFields(
        intent=str(intent).strip() if intent and str(intent).strip() else "unknown",
        intent_confidence=_confidence(_pick(data, "intentConfidence", "intent_confidence", "confidence")),
        sentiment=_enum_value(Sentiment, _pick(data, "sentiment"), Sentiment.NEUTRAL),
        extracted_info=_extracted_info(_pick(data, "extractedInfo", "extracted_info")),
        suggested_actions=_actions(_pick(data, "suggestedActions", "suggested_actions")),
        draft_response=str(draft) if draft is not None else "",
        risk_level=_enum_value(RiskLevel, _pick(data, "riskLevel", "risk_level"), RiskLevel.MEDIUM),
    )


def parse_response_analysis(text: str) -> ParsedResponse:
    data = extract_json_object(text)
    if data is None:
        return Fallback(raw_text=text)
    return Structured(fields=normalize_fields(data), raw_text=text)


def extract_subject(content: str) -> tuple[str | None, str]:
    """Split a ``Subject:`` / ``Oggetto:`` line off an email draft."""
    match = _SUBJECT_LINE.search(content)
    if match is None:
        return None, content.strip()
    subject = match.group("subject").strip().strip("*").strip()
    body = (content[: match.start()] + content[match.end() :]).strip()
    return (subject or None), body
