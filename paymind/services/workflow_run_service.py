"""Workflow run history: create, list, fetch and delete audit records."""

from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from paymind.models import WorkflowLog, WorkflowRun
from paymind.models.base import utcnow
from paymind.models.enums import RunStatus
from paymind.schemas.workflow_runs import WorkflowLogRead, WorkflowRunCreate, WorkflowRunRead
from paymind.services.base_service import BaseService

logger = logging.getLogger(__name__)


def _dump_blob(value: Any) -> str | None:
    if value is None:
        return None
    return json.dumps(value, default=str)


def _load_blob(value: str | None) -> Any:
    if not value:
        return None
    try:
        return json.loads(value)
    except ValueError:
        logger.warning("workflow_run.blob.invalid_json", extra={"event": "workflow_run.blob.invalid_json"})
        return None


def default_run_name() -> str:
    return utcnow().strftime("Run %Y-%m-%d %H:%M:%S")


def to_read_model(run: WorkflowRun) -> WorkflowRunRead:
    """Decode JSON blob columns at the API boundary."""
    return WorkflowRunRead(
        id=run.id,
        name=run.name,
        status=run.status,
        total_invoices=run.total_invoices,
        overdue_invoices=run.overdue_invoices,
        total_credits=run.total_credits,
        overdue_amount=run.overdue_amount,
        messages_generated=run.messages_generated,
        ai_provider=run.ai_provider,
        ai_model=run.ai_model,
        analysis_report=run.analysis_report,
        generated_messages=_load_blob(run.generated_messages),
        response_analysis=_load_blob(run.response_analysis),
        invoices_snapshot=_load_blob(run.invoices_snapshot),
        started_at=run.started_at,
        completed_at=run.completed_at,
        logs=[WorkflowLogRead.model_validate(log) for log in run.logs],
    )


class WorkflowRunService(BaseService):
    """CRUD over ``workflow_runs`` and their ``workflow_logs``."""

    def create_run(self, payload: WorkflowRunCreate) -> WorkflowRun:
        run = WorkflowRun(
            name=payload.name or default_run_name(),
            status=payload.status.value,
            total_invoices=payload.total_invoices,
            overdue_invoices=payload.overdue_invoices,
            total_credits=payload.total_credits,
            overdue_amount=payload.overdue_amount,
            messages_generated=payload.messages_generated,
            ai_provider=payload.ai_provider,
            ai_model=payload.ai_model,
            analysis_report=payload.analysis_report,
            generated_messages=_dump_blob(payload.generated_messages),
            response_analysis=_dump_blob(payload.response_analysis),
            invoices_snapshot=_dump_blob(payload.invoices_snapshot),
            completed_at=utcnow() if payload.status == RunStatus.COMPLETED else None,
        )
        for entry in payload.logs or []:
            run.logs.append(
                WorkflowLog(
                    agent=entry.agent,
                    message=entry.message,
                    type=entry.type.value,
                    timestamp=entry.timestamp or utcnow(),
                )
            )
        try:
            self.db.add(run)
            self.commit()
            self.db.refresh(run)
        except SQLAlchemyError as exc:
            raise self._fail("create workflow run", exc) from exc

        logger.info(
            "workflow_run.created",
            extra={"event": "workflow_run.created", "run_id": run.id, "count": len(run.logs)},
        )
        return run

    def list_runs(self) -> list[WorkflowRun]:
        """Runs newest first, each with its logs in timestamp order."""
        try:
            return (
                self.db.query(WorkflowRun)
                .options(selectinload(WorkflowRun.logs))
                .order_by(WorkflowRun.started_at.desc())
                .all()
            )
        except SQLAlchemyError as exc:
            raise self._fail("fetch workflow runs", exc) from exc

    def get_run(self, run_id: str) -> WorkflowRun | None:
        try:
            return (
                self.db.query(WorkflowRun)
                .options(selectinload(WorkflowRun.logs))
                .filter(WorkflowRun.id == run_id)
                .first()
            )
        except SQLAlchemyError as exc:
            raise self._fail("fetch workflow run", exc) from exc

    def delete_run(self, run_id: str) -> bool:
        try:
            exists = self.db.query(WorkflowRun.id).filter(WorkflowRun.id == run_id).first()
            if exists is None:
                return False
            self.db.query(WorkflowLog).filter(WorkflowLog.workflow_id == run_id).delete(synchronize_session=False)
            self.db.query(WorkflowRun).filter(WorkflowRun.id == run_id).delete(synchronize_session=False)
            self.commit()
        except SQLAlchemyError as exc:
            raise self._fail("delete workflow run", exc) from exc
        return True

    def delete_all_runs(self) -> int:
        try:
            self.db.query(WorkflowLog).delete(synchronize_session=False)
            deleted = self.db.query(WorkflowRun).delete(synchronize_session=False)
            self.commit()
        except SQLAlchemyError as exc:
            raise self._fail("delete workflow runs", exc) from exc
        logger.info("workflow_run.deleted_all", extra={"event": "workflow_run.deleted_all", "count": deleted})
        return deleted
