from __future__ import annotations

from datetime import datetime, timedelta, timezone

from paymind.models import WorkflowLog, WorkflowRun
from paymind.models.enums import LogType, RunStatus
from paymind.schemas.workflow_runs import WorkflowLogCreate, WorkflowRunCreate
from paymind.services.workflow_run_service import WorkflowRunService, to_read_model


def _payload(**overrides) -> WorkflowRunCreate:
    base = {
        "status": RunStatus.COMPLETED,
        "total_invoices": 3,
        "overdue_invoices": 2,
        "total_credits": 1500.0,
        "overdue_amount": 1200.0,
        "messages_generated": 2,
        "ai_provider": "anthropic",
        "ai_model": "claude-sonnet-4-5-20250929",
        "analysis_report": "Two invoices need attention.",
        "generated_messages": [{"invoiceId": "INV-1", "channel": "email"}],
        "response_analysis": {"intent": "payment_promise"},
        "invoices_snapshot": [{"invoiceId": "INV-1"}],
        "logs": [
            WorkflowLogCreate(agent="system", message="Workflow started"),
            WorkflowLogCreate(agent="system", message="Workflow completed", type=LogType.SUCCESS),
        ],
    }
    base.update(overrides)
    return WorkflowRunCreate(**base)


def test_create_run_persists_logs_and_blobs(db_session):
    service = WorkflowRunService(db=db_session)

    run = service.create_run(_payload())
    read = to_read_model(run)

    assert read.name.startswith("Run ")
    assert read.status == "completed"
    assert read.completed_at is not None
    assert read.generated_messages == [{"invoiceId": "INV-1", "channel": "email"}]
    assert read.response_analysis == {"intent": "payment_promise"}
    assert [log.message for log in read.logs] == ["Workflow started", "Workflow completed"]
    assert read.logs[1].type == "success"


def test_cancelled_run_has_no_completion_time(db_session):
    run = WorkflowRunService(db=db_session).create_run(_payload(status=RunStatus.CANCELLED, name="Stopped"))
    assert run.name == "Stopped"
    assert run.completed_at is None


def test_list_runs_newest_first(db_session):
    service = WorkflowRunService(db=db_session)
    older = service.create_run(_payload(name="older"))
    newer = service.create_run(_payload(name="newer"))
    older.started_at = datetime.now(timezone.utc) - timedelta(days=1)
    db_session.commit()

    names = [run.name for run in service.list_runs()]
    assert names == [newer.name, older.name]


def test_invalid_blob_reads_back_as_none(db_session):
    service = WorkflowRunService(db=db_session)
    run = service.create_run(_payload())
    run.response_analysis = "{not json"
    db_session.commit()

    assert to_read_model(service.get_run(run.id)).response_analysis is None


def test_delete_run_removes_logs(db_session):
    service = WorkflowRunService(db=db_session)
    run = service.create_run(_payload())

    assert service.delete_run(run.id) is True
    assert service.get_run(run.id) is None
    assert db_session.query(WorkflowLog).count() == 0
    assert service.delete_run(run.id) is False


def test_delete_all_runs_returns_count(db_session):
    service = WorkflowRunService(db=db_session)
    service.create_run(_payload())
    service.create_run(_payload(logs=None))

    assert service.delete_all_runs() == 2
    assert db_session.query(WorkflowRun).count() == 0
    assert service.delete_all_runs() == 0
