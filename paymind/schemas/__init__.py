"""Pydantic schema package for API contracts."""

from paymind.schemas.agents import (
    AgentRequest,
    ExtractedInfo,
    GeneratedReminder,
    PaymentMonitorResponse,
    ReminderRequest,
    ReminderResponse,
    ResponseAnalysisFields,
    ResponseAnalysisResult,
    ResponseHandlerRequest,
    ResponseHandlerResponse,
)
from paymind.schemas.common import APIEnvelope, CamelModel, ErrorEnvelope
from paymind.schemas.invoices import (
    AggregateStats,
    InvoiceDeleteResponse,
    InvoiceRead,
    InvoiceRow,
    InvoiceUploadRequest,
    InvoiceUploadResponse,
    PriorityBreakdown,
)
from paymind.schemas.settings import (
    KeyValidationRequest,
    KeyValidationResponse,
    ModelInfo,
    ProviderInfo,
    SettingsResponse,
)
from paymind.schemas.workflow_runs import (
    WorkflowLogCreate,
    WorkflowLogRead,
    WorkflowRunCreate,
    WorkflowRunEnvelope,
    WorkflowRunListResponse,
    WorkflowRunRead,
)

__all__ = [
    "AgentRequest",
    "AggregateStats",
    "APIEnvelope",
    "CamelModel",
    "ErrorEnvelope",
    "ExtractedInfo",
    "GeneratedReminder",
    "InvoiceDeleteResponse",
    "InvoiceRead",
    "InvoiceRow",
    "InvoiceUploadRequest",
    "InvoiceUploadResponse",
    "KeyValidationRequest",
    "KeyValidationResponse",
    "ModelInfo",
    "PaymentMonitorResponse",
    "PriorityBreakdown",
    "ProviderInfo",
    "ReminderRequest",
    "ReminderResponse",
    "ResponseAnalysisFields",
    "ResponseAnalysisResult",
    "ResponseHandlerRequest",
    "ResponseHandlerResponse",
    "SettingsResponse",
    "WorkflowLogCreate",
    "WorkflowLogRead",
    "WorkflowRunCreate",
    "WorkflowRunEnvelope",
    "WorkflowRunListResponse",
    "WorkflowRunRead",
]
