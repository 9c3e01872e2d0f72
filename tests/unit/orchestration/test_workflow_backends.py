from __future__ import annotations

import asyncio
import time

import pytest

from paymind.core.exceptions import ServiceError
from paymind.models import Message, ResponseAnalysis
from paymind.models.enums import RunStatus
from paymind.orchestration import backends
from paymind.orchestration.backends import HttpBackend, ServiceBackend
from paymind.orchestration.state import restore_from_run
from paymind.orchestration.workflow import WorkflowOrchestrator
from paymind.schemas.agents import AgentRequest
from paymind.services.invoice_service import InvoiceService
from paymind.services.workflow_run_service import WorkflowRunService


@pytest.fixture
def seeded_backend(session_factory, make_row, generator_cls, monkeypatch):
    with session_factory() as db:
        InvoiceService(db).bulk_upsert(
            [
                make_row("INV-1", days_ago=100),
                make_row("INV-2", days_ago=15, status="disputed"),
                make_row("INV-3", days_ago=-20),
            ]
        )

    generator = generator_cls(
        [
            "Portfolio report",
            "Subject: Reminder INV-1\n\nPlease pay INV-1.",
            "Subject: About INV-2\n\nWe are reviewing your dispute.",
            '{"intent": "dispute", "riskLevel": "high", "intentConfidence": 90}',
        ]
    )
    monkeypatch.setattr(backends, "build_generator", lambda provider, model=None, api_key=None: generator)
    backend = ServiceBackend(session_factory=session_factory)
    backend.generator = generator
    return backend


def test_service_backend_runs_full_workflow_and_saves_history(seeded_backend, session_factory):
    orchestrator = WorkflowOrchestrator(seeded_backend, options=AgentRequest(), wait_seconds=0)

    state = asyncio.run(orchestrator.run())

    assert state.status == RunStatus.COMPLETED, state.error
    assert [msg.invoice_id for msg in state.generated_messages] == ["INV-1", "INV-2"]
    assert state.generated_messages[0].subject == "Reminder INV-1"
    assert state.response_analysis.intent == "dispute"
    assert state.response_analysis.invoice_id == "INV-1"

    saved = orchestrator.save_run("Integration run")

    assert saved.name == "Integration run"
    assert saved.messages_generated == 2
    with session_factory() as db:
        assert db.query(Message).count() == 2
        assert db.query(ResponseAnalysis).count() == 1
        stored = WorkflowRunService(db).get_run(saved.id)
        assert stored is not None
        assert len(stored.logs) == len(state.logs)

    restored = restore_from_run(saved)
    assert restored.analysis_report == "Portfolio report"
    assert [msg.invoice_id for msg in restored.generated_messages] == ["INV-1", "INV-2"]


def test_cancel_mid_generate_keeps_earlier_messages(seeded_backend, session_factory, monkeypatch):
    orchestrator = WorkflowOrchestrator(seeded_backend, options=AgentRequest(), wait_seconds=0)
    generator = seeded_backend.generator
    complete = generator._complete

    def cancel_on_second_reminder(system_prompt, user_prompt, max_tokens):
        if len(generator.calls) == 2:
            orchestrator.cancel()
            time.sleep(0.2)
        return complete(system_prompt, user_prompt, max_tokens)

    monkeypatch.setattr(generator, "_complete", cancel_on_second_reminder)

    state = asyncio.run(orchestrator.run())

    assert state.status == RunStatus.CANCELLED
    assert [msg.invoice_id for msg in state.generated_messages] == ["INV-1"]
    assert all(agent.status.value == "idle" for agent in state.agents)
    with session_factory() as db:
        persisted = [row.invoice_id for row in InvoiceService(db).list_messages()]
    assert "INV-1" in persisted


class _FakeHttpResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("no body")
        return self._body


class _FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, json=None):
        self.requests.append((method, url, json))
        return self.responses.pop(0)


def test_http_backend_posts_camel_case_agent_bodies():
    reminder = {
        "success": True,
        "messages": [
            {
                "id": 3,
                "invoiceId": "INV-9",
                "customerName": "Verdi",
                "channel": "sms",
                "content": "Pay INV-9",
                "priority": "LOW",
                "amount": 80.0,
                "daysOverdue": 4,
            }
        ],
        "count": 1,
        "provider": "openrouter",
        "model": "meta-llama/llama-3.3-70b-instruct:free",
    }
    session = _FakeSession([_FakeHttpResponse(200, reminder)])
    backend = HttpBackend("http://localhost:8000/api/", session=session)

    result = backend.generate_reminder("INV-9", AgentRequest(provider="openrouter", api_key="or-key", language="it"))

    assert result.invoice_id == "INV-9"
    method, url, body = session.requests[0]
    assert (method, url) == ("POST", "http://localhost:8000/api/agents/reminder-generator")
    assert body == {"provider": "openrouter", "apiKey": "or-key", "language": "it", "invoiceIds": ["INV-9"]}


def test_http_backend_surfaces_error_envelope():
    session = _FakeSession([_FakeHttpResponse(400, {"error": "No invoices found"})])
    backend = HttpBackend("http://api", session=session)

    with pytest.raises(ServiceError, match="No invoices found"):
        backend.analyze(AgentRequest())


def test_http_backend_reports_status_without_body():
    session = _FakeSession([_FakeHttpResponse(502, None)])
    backend = HttpBackend("http://api", session=session)

    with pytest.raises(ServiceError, match="HTTP 502"):
        backend.list_invoices()


def test_http_backend_response_handler_omits_missing_invoice():
    analysis = {
        "success": True,
        "analysis": {"intent": "unknown", "originalMessage": "hi", "parseStatus": "fallback"},
        "provider": "anthropic",
        "model": "claude-sonnet-4-5-20250929",
    }
    session = _FakeSession([_FakeHttpResponse(200, analysis)])

    result = HttpBackend("http://api", session=session).handle_response("hi", None, AgentRequest())

    assert result.analysis.parse_status == "fallback"
    assert "invoiceId" not in session.requests[0][2]
    assert session.requests[0][2]["customerMessage"] == "hi"
