from __future__ import annotations

import asyncio
import time
from datetime import date

import pytest

from paymind.core.exceptions import GenerationError
from paymind.models.enums import Channel, InvoiceStatus, LogType, Priority, RunStatus
from paymind.orchestration.backends import WorkflowBackend
from paymind.orchestration.replies import CustomerReply
from paymind.orchestration.state import (
    ANALYZE_STEP,
    GENERATE_STEP,
    LOAD_STEP,
    REMINDER_GENERATOR,
    RESPOND_STEP,
    WAIT_STEP,
)
from paymind.orchestration.state_machine import AgentStatus, StepStatus
from paymind.orchestration.workflow import WorkflowOrchestrator
from paymind.schemas.agents import (
    AgentRequest,
    GeneratedReminder,
    PaymentMonitorResponse,
    ResponseAnalysisResult,
    ResponseHandlerResponse,
)
from paymind.schemas.invoices import InvoiceRead
from paymind.services.invoice_stats import compute_stats


def _invoice(idx: int, status: str, days_overdue: int, priority=Priority.LOW) -> InvoiceRead:
    return InvoiceRead(
        id=idx,
        invoice_id=f"INV-{idx}",
        customer_name=f"Customer {idx}",
        amount_total=400.0,
        amount_paid=0.0,
        due_date=date(2026, 1, 1),
        status=InvoiceStatus(status),
        preferred_channel=Channel.EMAIL,
        days_overdue=days_overdue,
        priority=priority,
    )


class ScriptedBackend(WorkflowBackend):
    def __init__(self, invoices, on_reminder=None, analyze_error=None, reply_text=None):
        self.invoices = invoices
        self.on_reminder = on_reminder
        self.analyze_error = analyze_error
        self.reply_text = reply_text
        self.reminder_calls: list[str] = []
        self.replies: list[tuple[str, str | None]] = []

    def list_invoices(self):
        return list(self.invoices)

    def analyze(self, options):
        if self.analyze_error is not None:
            raise self.analyze_error
        return PaymentMonitorResponse(
            analysis="Report",
            stats=compute_stats(self.invoices),
            provider=options.provider.value,
            model="scripted-model",
            tokens_used=10,
        )

    def generate_reminder(self, invoice_id, options):
        self.reminder_calls.append(invoice_id)
        if self.on_reminder is not None:
            self.on_reminder(len(self.reminder_calls))
        invoice = next(inv for inv in self.invoices if inv.invoice_id == invoice_id)
        return GeneratedReminder(
            id=len(self.reminder_calls),
            invoice_id=invoice_id,
            customer_name=invoice.customer_name,
            channel=invoice.preferred_channel,
            content=f"Please pay {invoice_id}",
            priority=(invoice.priority or Priority.LOW).value,
            amount=invoice.amount_due,
            days_overdue=invoice.days_overdue,
        )

    def handle_response(self, customer_message, invoice_id, options):
        self.replies.append((customer_message, invoice_id))
        parse_status = "fallback" if self.reply_text else "structured"
        return ResponseHandlerResponse(
            analysis=ResponseAnalysisResult(
                intent="request_delay" if not self.reply_text else "unknown",
                original_message=customer_message,
                invoice_id=invoice_id,
                draft_response=self.reply_text or "We can agree on a plan.",
                parse_status=parse_status,
            ),
            provider=options.provider.value,
            model="scripted-model",
        )

    def save_run(self, payload):
        raise NotImplementedError


@pytest.fixture
def invoices():
    return [
        _invoice(1, "open", 10),
        _invoice(2, "open", 120, Priority.HIGH),
        _invoice(3, "disputed", 0, Priority.HIGH),
        _invoice(4, "paid", 30, None),
        _invoice(5, "open", 0),
    ]


def _orchestrator(backend, **kwargs):
    kwargs.setdefault("wait_seconds", 0)
    return WorkflowOrchestrator(backend, options=AgentRequest(provider="openai"), **kwargs)


def test_successful_run_completes_every_step(invoices):
    backend = ScriptedBackend(invoices)
    orchestrator = _orchestrator(backend)

    state = asyncio.run(orchestrator.run())

    assert state.status == RunStatus.COMPLETED
    assert not state.is_running
    assert [step.status for step in state.steps] == [StepStatus.COMPLETED] * 5
    assert all(agent.status == AgentStatus.COMPLETED for agent in state.agents)
    assert backend.reminder_calls == ["INV-2", "INV-1", "INV-3"]
    assert [msg.invoice_id for msg in state.generated_messages] == ["INV-2", "INV-1", "INV-3"]
    assert state.analysis_report == "Report"
    assert state.stats.overdue_invoices == 2
    assert state.model == "scripted-model"
    assert state.current_step == RESPOND_STEP
    assert backend.replies[0][1] == "INV-2"
    assert state.response_analysis.intent == "request_delay"
    assert state.logs[0].message == "Workflow completed"
    assert state.logs[-1].message == "Workflow started"


def test_batch_size_caps_reminders(invoices):
    backend = ScriptedBackend(invoices)

    asyncio.run(_orchestrator(backend, batch_size=2).run())

    assert backend.reminder_calls == ["INV-2", "INV-1"]


def test_cancel_during_generate_keeps_completed_reminders(invoices):
    orchestrator = None

    def cancel_on_second(call_number):
        if call_number == 2:
            orchestrator.cancel()
            time.sleep(0.2)

    backend = ScriptedBackend(invoices, on_reminder=cancel_on_second)
    orchestrator = _orchestrator(backend)

    state = asyncio.run(orchestrator.run())

    assert state.status == RunStatus.CANCELLED
    assert not state.is_running
    assert state.step(LOAD_STEP).status == StepStatus.COMPLETED
    assert state.step(ANALYZE_STEP).status == StepStatus.COMPLETED
    assert state.step(GENERATE_STEP).status == StepStatus.PENDING
    assert state.step(WAIT_STEP).status == StepStatus.PENDING
    assert all(agent.status == AgentStatus.IDLE for agent in state.agents)
    assert [msg.invoice_id for msg in state.generated_messages] == ["INV-2"]
    assert backend.reminder_calls == ["INV-2", "INV-1"]
    assert backend.replies == []
    assert state.logs[0].message == "Workflow stopped by user"
    assert state.error is None


def test_cancel_during_wait_skips_respond(invoices):
    backend = ScriptedBackend(invoices)
    orchestrator = _orchestrator(backend, wait_seconds=5)

    async def scenario():
        task = asyncio.create_task(orchestrator.run())
        while orchestrator.state.step(WAIT_STEP).status != StepStatus.RUNNING:
            await asyncio.sleep(0.01)
        orchestrator.cancel()
        return await task

    state = asyncio.run(scenario())

    assert state.status == RunStatus.CANCELLED
    assert state.step(GENERATE_STEP).status == StepStatus.COMPLETED
    assert state.step(WAIT_STEP).status == StepStatus.PENDING
    assert backend.replies == []


def test_failure_marks_step_and_agents_as_error(invoices):
    backend = ScriptedBackend(invoices, analyze_error=GenerationError("Invalid API key", provider="openai"))

    state = asyncio.run(_orchestrator(backend).run())

    assert state.status == RunStatus.ERROR
    assert state.error == "Invalid API key"
    assert state.step(LOAD_STEP).status == StepStatus.COMPLETED
    assert state.step(ANALYZE_STEP).status == StepStatus.ERROR
    assert state.step(GENERATE_STEP).status == StepStatus.PENDING
    assert all(agent.status == AgentStatus.ERROR for agent in state.agents)
    assert state.logs[0].type == LogType.ERROR
    assert state.logs[0].message == "Workflow failed: Invalid API key"


def test_empty_invoice_list_fails_at_load():
    state = asyncio.run(_orchestrator(ScriptedBackend([])).run())

    assert state.status == RunStatus.ERROR
    assert "No invoices" in state.error
    assert state.analysis_report is None
    assert state.generated_messages == []


def test_no_candidates_still_reaches_respond():
    backend = ScriptedBackend([_invoice(1, "open", 0), _invoice(2, "paid", 40, None)])

    state = asyncio.run(_orchestrator(backend).run())

    assert state.status == RunStatus.COMPLETED
    assert state.generated_messages == []
    assert backend.replies[0][1] is None
    assert any(entry.type == LogType.WARNING and entry.agent == REMINDER_GENERATOR for entry in state.logs)


def test_fallback_reply_is_logged_as_warning(invoices):
    backend = ScriptedBackend(invoices, reply_text="Unparseable prose")

    state = asyncio.run(_orchestrator(backend).run())

    assert state.response_analysis.parse_status == "fallback"
    assert any("fallback" in entry.message for entry in state.logs if entry.type == LogType.WARNING)


def test_custom_reply_source_is_used(invoices):
    backend = ScriptedBackend(invoices)
    source = lambda state, language: CustomerReply("Paid yesterday", invoice_id="INV-1")  # noqa: E731

    asyncio.run(_orchestrator(backend, reply_source=source).run())

    assert backend.replies == [("Paid yesterday", "INV-1")]


def test_rerun_resets_results_but_keeps_logs(invoices):
    orchestrator = _orchestrator(ScriptedBackend(invoices))
    asyncio.run(orchestrator.run())
    first_log_count = len(orchestrator.state.logs)

    state = asyncio.run(orchestrator.run())

    assert state.status == RunStatus.COMPLETED
    assert len(state.generated_messages) == 3
    assert len(state.logs) > first_log_count
