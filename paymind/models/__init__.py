"""SQLAlchemy model package for the PayMind schema."""

from paymind.models.base import Base
from paymind.models.enums import (
    Channel,
    InvoiceStatus,
    LogType,
    MessageStatus,
    Priority,
    RiskLevel,
    RunStatus,
    Sentiment,
)
from paymind.models.invoice import Invoice
from paymind.models.message import Message
from paymind.models.response_analysis import ResponseAnalysis
from paymind.models.workflow_run import WorkflowLog, WorkflowRun

__all__ = [
    "Base",
    "Channel",
    "Invoice",
    "InvoiceStatus",
    "LogType",
    "Message",
    "MessageStatus",
    "Priority",
    "ResponseAnalysis",
    "RiskLevel",
    "RunStatus",
    "Sentiment",
    "WorkflowLog",
    "WorkflowRun",
]
