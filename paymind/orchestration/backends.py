"""Backends the orchestrator drives: in-process services or the HTTP API."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable

import requests
from sqlalchemy.orm import Session

from paymind.agents import PaymentMonitorAgent, ReminderGeneratorAgent, ResponseHandlerAgent
from paymind.core.exceptions import ServiceError
from paymind.database.db import get_session_factory
from paymind.llm.client import build_generator
from paymind.schemas.agents import (
    AgentRequest,
    GeneratedReminder,
    PaymentMonitorResponse,
    ReminderResponse,
    ResponseHandlerResponse,
)
from paymind.schemas.invoices import InvoiceRead, InvoiceUploadResponse
from paymind.schemas.workflow_runs import WorkflowRunCreate, WorkflowRunEnvelope, WorkflowRunRead
from paymind.services.invoice_service import InvoiceService
from paymind.services.workflow_run_service import WorkflowRunService, to_read_model

logger = logging.getLogger(__name__)


class WorkflowBackend(ABC):
    """Blocking operations the orchestrator awaits one at a time."""

    @abstractmethod
    def list_invoices(self) -> list[InvoiceRead]:
        ...

    @abstractmethod
    def analyze(self, options: AgentRequest) -> PaymentMonitorResponse:
        ...

    @abstractmethod
    def generate_reminder(self, invoice_id: str, options: AgentRequest) -> GeneratedReminder:
        ...

    @abstractmethod
    def handle_response(
        self,
        customer_message: str,
        invoice_id: str | None,
        options: AgentRequest,
    ) -> ResponseHandlerResponse:
        ...

    @abstractmethod
    def save_run(self, payload: WorkflowRunCreate) -> WorkflowRunRead:
        ...


class ServiceBackend(WorkflowBackend):
    """Calls services and agents directly with a fresh session per call."""

    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        self.session_factory = session_factory or get_session_factory()

    def _generator(self, options: AgentRequest):
        return build_generator(options.provider, model=options.model, api_key=options.api_key)

    def list_invoices(self) -> list[InvoiceRead]:
        with self.session_factory() as db:
            return [InvoiceRead.model_validate(invoice) for invoice in InvoiceService(db).list_invoices()]

    def analyze(self, options: AgentRequest) -> PaymentMonitorResponse:
        generator = self._generator(options)
        with self.session_factory() as db:
            return PaymentMonitorAgent(generator, InvoiceService(db)).analyze(language=options.language)

    def generate_reminder(self, invoice_id: str, options: AgentRequest) -> GeneratedReminder:
        generator = self._generator(options)
        with self.session_factory() as db:
            response = ReminderGeneratorAgent(generator, InvoiceService(db)).generate(
                invoice_ids=[invoice_id], language=options.language
            )
        return response.messages[0]

    def handle_response(
        self,
        customer_message: str,
        invoice_id: str | None,
        options: AgentRequest,
    ) -> ResponseHandlerResponse:
        generator = self._generator(options)
        with self.session_factory() as db:
            return ResponseHandlerAgent(generator, InvoiceService(db)).handle(
                customer_message=customer_message,
                invoice_id=invoice_id,
                language=options.language,
            )

    def save_run(self, payload: WorkflowRunCreate) -> WorkflowRunRead:
        with self.session_factory() as db:
            return to_read_model(WorkflowRunService(db).create_run(payload))


class HttpBackend(WorkflowBackend):
    """Drives a running PayMind API over HTTP."""

    def __init__(self, base_url: str, session: requests.Session | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=payload)
        except requests.exceptions.RequestException as exc:
            logger.warning(
                "backend.http.failed",
                extra={"event": "backend.http.failed", "step": path, "error": str(exc)},
            )
            raise ServiceError(f"Request to {path} failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None
        if not response.ok:
            message = body.get("error") if isinstance(body, dict) else None
            raise ServiceError(message or f"{method} {path} returned HTTP {response.status_code}")
        return body

    @staticmethod
    def _agent_body(options: AgentRequest, **extra: Any) -> dict[str, Any]:
        body = options.model_dump(mode="json", by_alias=True, exclude_none=True)
        body.update(extra)
        return body

    def upload_invoices(self, rows: list[dict[str, Any]]) -> InvoiceUploadResponse:
        return InvoiceUploadResponse.model_validate(self._request("POST", "/invoices", {"invoices": rows}))

    def list_invoices(self) -> list[InvoiceRead]:
        return [InvoiceRead.model_validate(item) for item in self._request("GET", "/invoices")]

    def analyze(self, options: AgentRequest) -> PaymentMonitorResponse:
        body = self._request("POST", "/agents/payment-monitor", self._agent_body(options))
        return PaymentMonitorResponse.model_validate(body)

    def generate_reminder(self, invoice_id: str, options: AgentRequest) -> GeneratedReminder:
        body = self._request(
            "POST",
            "/agents/reminder-generator",
            self._agent_body(options, invoiceIds=[invoice_id]),
        )
        response = ReminderResponse.model_validate(body)
        if not response.messages:
            raise ServiceError(f"No reminder generated for invoice {invoice_id}")
        return response.messages[0]

    def handle_response(
        self,
        customer_message: str,
        invoice_id: str | None,
        options: AgentRequest,
    ) -> ResponseHandlerResponse:
        extra: dict[str, Any] = {"customerMessage": customer_message}
        if invoice_id:
            extra["invoiceId"] = invoice_id
        body = self._request("POST", "/agents/response-handler", self._agent_body(options, **extra))
        return ResponseHandlerResponse.model_validate(body)

    def save_run(self, payload: WorkflowRunCreate) -> WorkflowRunRead:
        body = self._request(
            "POST",
            "/workflow-runs",
            payload.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        return WorkflowRunEnvelope.model_validate(body).run
