"""Workflow orchestration: state, cancellation, backends and the step runner."""

from paymind.orchestration.backends import HttpBackend, ServiceBackend, WorkflowBackend
from paymind.orchestration.cancellation import CancellationToken, WorkflowCancelled
from paymind.orchestration.state import WorkflowState, build_run_record, restore_from_run
from paymind.orchestration.workflow import WorkflowOrchestrator

__all__ = [
    "CancellationToken",
    "HttpBackend",
    "ServiceBackend",
    "WorkflowBackend",
    "WorkflowCancelled",
    "WorkflowOrchestrator",
    "WorkflowState",
    "build_run_record",
    "restore_from_run",
]
