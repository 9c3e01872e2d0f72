"""Workflow run audit models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paymind.models.base import Base, utcnow


def _new_run_id() -> str:
    return str(uuid.uuid4())


class WorkflowRun(Base):
    __tablename__ = "workflow_runs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_run_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    total_invoices: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    overdue_invoices: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_credits: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    overdue_amount: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    messages_generated: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    ai_provider: Mapped[str | None] = mapped_column(String(32))
    ai_model: Mapped[str | None] = mapped_column(String(128))
    analysis_report: Mapped[str | None] = mapped_column(Text)
    # JSON snapshots frozen at save time.
    generated_messages: Mapped[str | None] = mapped_column(Text)
    response_analysis: Mapped[str | None] = mapped_column(Text)
    invoices_snapshot: Mapped[str | None] = mapped_column(Text)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    logs: Mapped[list["WorkflowLog"]] = relationship(
        back_populates="workflow",
        cascade="all, delete-orphan",
        order_by=lambda: [WorkflowLog.timestamp, WorkflowLog.id],
    )


class WorkflowLog(Base):
    __tablename__ = "workflow_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    workflow_id: Mapped[str] = mapped_column(
        ForeignKey("workflow_runs.id", ondelete="CASCADE"), index=True, nullable=False
    )
    agent: Mapped[str] = mapped_column(String(64), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), default="info", nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    workflow: Mapped[WorkflowRun] = relationship(back_populates="logs")
