"""Request/response contracts for the three agent endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from paymind.llm.providers import AIProvider
from paymind.models.enums import Channel, RiskLevel, Sentiment
from paymind.schemas.common import CamelModel
from paymind.schemas.invoices import AggregateStats

Language = Literal["en", "it"]


class AgentRequest(CamelModel):
    provider: AIProvider = AIProvider.ANTHROPIC
    model: str | None = None
    api_key: str | None = None
    language: Language = "en"


class PaymentMonitorResponse(CamelModel):
    success: bool = True
    analysis: str
    stats: AggregateStats
    provider: str
    model: str
    tokens_used: int | None = None


class ReminderRequest(AgentRequest):
    invoice_ids: list[str] | None = None


class GeneratedReminder(CamelModel):
    id: int
    invoice_id: str
    customer_name: str
    channel: Channel
    subject: str | None = None
    content: str
    priority: str | None = None
    amount: float
    days_overdue: int = 0


class ReminderResponse(CamelModel):
    success: bool = True
    messages: list[GeneratedReminder]
    count: int
    provider: str
    model: str
    tokens_used: int | None = None


class ResponseHandlerRequest(AgentRequest):
    invoice_id: str | None = None
    customer_message: str = Field(min_length=1)


class ExtractedInfo(CamelModel):
    label: str
    value: str


class ResponseAnalysisFields(CamelModel):
    """Normalized classification of one customer reply."""

    intent: str = "unknown"
    intent_confidence: int = Field(default=50, ge=0, le=100)
    sentiment: Sentiment = Sentiment.NEUTRAL
    extracted_info: list[ExtractedInfo] = Field(default_factory=list)
    suggested_actions: list[str] = Field(default_factory=list)
    draft_response: str = ""
    risk_level: RiskLevel = RiskLevel.MEDIUM


class ResponseAnalysisResult(ResponseAnalysisFields):
    invoice_id: str | None = None
    customer_name: str = "Unknown"
    original_message: str
    parse_status: Literal["structured", "fallback"] = "structured"


class ResponseHandlerResponse(CamelModel):
    success: bool = True
    analysis: ResponseAnalysisResult
    provider: str
    model: str
    tokens_used: int | None = None
