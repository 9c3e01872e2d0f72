"""Workflow run history endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from paymind.core.dependencies import get_workflow_run_service
from paymind.core.exceptions import NotFoundError
from paymind.schemas.common import APIEnvelope
from paymind.schemas.workflow_runs import WorkflowRunCreate, WorkflowRunEnvelope, WorkflowRunListResponse
from paymind.services.workflow_run_service import WorkflowRunService, to_read_model

router = APIRouter(prefix="/workflow-runs", tags=["workflow-runs"])


@router.get("", response_model=WorkflowRunListResponse)
def list_runs(service: WorkflowRunService = Depends(get_workflow_run_service)) -> WorkflowRunListResponse:
    return WorkflowRunListResponse(runs=[to_read_model(run) for run in service.list_runs()])


@router.post("", response_model=WorkflowRunEnvelope)
def create_run(
    payload: WorkflowRunCreate,
    service: WorkflowRunService = Depends(get_workflow_run_service),
) -> WorkflowRunEnvelope:
    return WorkflowRunEnvelope(run=to_read_model(service.create_run(payload)))


@router.delete("", response_model=APIEnvelope)
def delete_runs(service: WorkflowRunService = Depends(get_workflow_run_service)) -> APIEnvelope:
    deleted = service.delete_all_runs()
    return APIEnvelope(message=f"Deleted {deleted} workflow runs")


@router.get("/{run_id}", response_model=WorkflowRunEnvelope)
def get_run(run_id: str, service: WorkflowRunService = Depends(get_workflow_run_service)) -> WorkflowRunEnvelope:
    run = service.get_run(run_id)
    if run is None:
        raise NotFoundError("Workflow run not found")
    return WorkflowRunEnvelope(run=to_read_model(run))


@router.delete("/{run_id}", response_model=APIEnvelope)
def delete_run(run_id: str, service: WorkflowRunService = Depends(get_workflow_run_service)) -> APIEnvelope:
    if not service.delete_run(run_id):
        raise NotFoundError("Workflow run not found")
    return APIEnvelope()
