"""Agent endpoints: payment monitor, reminder generator, response handler."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from paymind.agents import PaymentMonitorAgent, ReminderGeneratorAgent, ResponseHandlerAgent
from paymind.core.dependencies import GeneratorFactory, get_generator_factory, get_invoice_service
from paymind.schemas.agents import (
    AgentRequest,
    PaymentMonitorResponse,
    ReminderRequest,
    ReminderResponse,
    ResponseHandlerRequest,
    ResponseHandlerResponse,
)
from paymind.services.invoice_service import InvoiceService

router = APIRouter(prefix="/agents", tags=["agents"])


def _generator(payload: AgentRequest, factory: GeneratorFactory):
    return factory(payload.provider, model=payload.model, api_key=payload.api_key)


@router.post("/payment-monitor", response_model=PaymentMonitorResponse)
def run_payment_monitor(
    payload: AgentRequest,
    service: InvoiceService = Depends(get_invoice_service),
    factory: GeneratorFactory = Depends(get_generator_factory),
) -> PaymentMonitorResponse:
    agent = PaymentMonitorAgent(_generator(payload, factory), service)
    return agent.analyze(language=payload.language)


@router.post("/reminder-generator", response_model=ReminderResponse)
def run_reminder_generator(
    payload: ReminderRequest,
    service: InvoiceService = Depends(get_invoice_service),
    factory: GeneratorFactory = Depends(get_generator_factory),
) -> ReminderResponse:
    agent = ReminderGeneratorAgent(_generator(payload, factory), service)
    return agent.generate(invoice_ids=payload.invoice_ids, language=payload.language)


@router.post("/response-handler", response_model=ResponseHandlerResponse)
def run_response_handler(
    payload: ResponseHandlerRequest,
    service: InvoiceService = Depends(get_invoice_service),
    factory: GeneratorFactory = Depends(get_generator_factory),
) -> ResponseHandlerResponse:
    agent = ResponseHandlerAgent(_generator(payload, factory), service)
    return agent.handle(
        customer_message=payload.customer_message,
        invoice_id=payload.invoice_id,
        language=payload.language,
    )
