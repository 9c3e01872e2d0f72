"""Workflow run history contracts."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field

from paymind.models.enums import LogType, RunStatus
from paymind.schemas.common import CamelModel


class WorkflowLogCreate(CamelModel):
    agent: str
    message: str
    type: LogType = LogType.INFO
    timestamp: datetime | None = None


class WorkflowLogRead(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    agent: str
    message: str
    type: str
    timestamp: datetime


class WorkflowRunCreate(CamelModel):
    name: str | None = None
    status: RunStatus
    total_invoices: int = Field(default=0, ge=0)
    overdue_invoices: int = Field(default=0, ge=0)
    total_credits: float = 0.0
    overdue_amount: float = 0.0
    messages_generated: int = Field(default=0, ge=0)
    ai_provider: str | None = None
    ai_model: str | None = None
    analysis_report: str | None = None
    generated_messages: list[dict[str, Any]] | None = None
    response_analysis: dict[str, Any] | None = None
    invoices_snapshot: list[dict[str, Any]] | None = None
    logs: list[WorkflowLogCreate] | None = None


class WorkflowRunRead(CamelModel):
    id: str
    name: str
    status: str
    total_invoices: int
    overdue_invoices: int
    total_credits: float
    overdue_amount: float
    messages_generated: int
    ai_provider: str | None = None
    ai_model: str | None = None
    analysis_report: str | None = None
    generated_messages: list[dict[str, Any]] | None = None
    response_analysis: dict[str, Any] | None = None
    invoices_snapshot: list[dict[str, Any]] | None = None
    started_at: datetime
    completed_at: datetime | None = None
    logs: list[WorkflowLogRead] = Field(default_factory=list)


class WorkflowRunEnvelope(CamelModel):
    run: WorkflowRunRead


class WorkflowRunListResponse(CamelModel):
    runs: list[WorkflowRunRead]
