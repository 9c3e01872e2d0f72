"""Response handler agent: classifies a customer reply and drafts an answer."""

from __future__ import annotations

import logging

from paymind.agents.base_agent import BaseAgent
from paymind.llm.parsing import Fallback, Structured, parse_response_analysis
from paymind.schemas.agents import ResponseAnalysisResult, ResponseHandlerResponse

logger = logging.getLogger(__name__)


class ResponseHandlerAgent(BaseAgent):
    name = "response-handler"
    prompt_key = "response_handler"

    def handle(
        self,
        customer_message: str,
        invoice_id: str | None = None,
        language: str = "en",
    ) -> ResponseHandlerResponse:
        invoice = self.invoices.get_invoice(invoice_id) if invoice_id else None
        context = {"customer_message": customer_message, "invoice": None}
        if invoice is not None:
            context["invoice"] = {
                "invoice_id": invoice.invoice_id,
                "customer_name": invoice.customer_name,
                "amount_due": invoice.amount_due,
                "due_date": invoice.due_date.isoformat(),
                "days_overdue": invoice.days_overdue,
                "status": invoice.status.value,
            }

        generated = self._generate(context, language)
        parsed = parse_response_analysis(generated.content)
        parse_status = "structured" if isinstance(parsed, Structured) else "fallback"
        if isinstance(parsed, Fallback):
            logger.warning(
                "agent.response_handler.fallback",
                extra={"event": "agent.response_handler.fallback", "invoice_id": invoice_id},
            )
        fields = parsed.fields

        if invoice is not None:
            self.invoices.create_response_analysis(
                invoice_id=invoice.invoice_id,
                customer_message=customer_message,
                fields=fields,
            )

        analysis = ResponseAnalysisResult(
            **fields.model_dump(),
            invoice_id=invoice_id or None,
            customer_name=invoice.customer_name if invoice is not None else "Unknown",
            original_message=customer_message,
            parse_status=parse_status,
        )
        return ResponseHandlerResponse(
            analysis=analysis,
            provider=generated.provider,
            model=generated.model,
            tokens_used=generated.tokens_used,
        )
