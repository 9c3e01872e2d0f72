"""Payment monitor agent: narrative report over the full invoice list."""

from __future__ import annotations

import logging
from datetime import date

from paymind.agents.base_agent import BaseAgent
from paymind.core.exceptions import ValidationError
from paymind.models import Invoice
from paymind.schemas.agents import PaymentMonitorResponse
from paymind.services.invoice_stats import compute_stats

logger = logging.getLogger(__name__)


def serialize_invoice(invoice: Invoice) -> dict:
    return {
        "id": invoice.invoice_id,
        "customer": invoice.customer_name,
        "amount_total": invoice.amount_total,
        "amount_paid": invoice.amount_paid,
        "amount_due": round(invoice.amount_due, 2),
        "due_date": invoice.due_date.isoformat(),
        "status": invoice.status.value,
        "days_overdue": invoice.days_overdue,
        "priority": invoice.priority.value if invoice.priority else None,
        "channel": invoice.preferred_channel.value,
        "email": invoice.customer_email,
        "phone": invoice.customer_phone,
    }


class PaymentMonitorAgent(BaseAgent):
    name = "payment-monitor"
    prompt_key = "payment_monitor"

    def analyze(self, language: str = "en", today: date | None = None) -> PaymentMonitorResponse:
        """Ask the model for a report; the numeric stats are computed locally."""
        invoices = self.invoices.list_invoices()
        if not invoices:
            raise ValidationError("No invoices found")

        context = {
            "today": (today or date.today()).isoformat(),
            "invoices": [serialize_invoice(invoice) for invoice in invoices],
        }
        generated = self._generate(context, language)
        stats = compute_stats(invoices)

        logger.info(
            "agent.payment_monitor.completed",
            extra={"event": "agent.payment_monitor.completed", "count": len(invoices)},
        )
        return PaymentMonitorResponse(
            analysis=generated.content,
            stats=stats,
            provider=generated.provider,
            model=generated.model,
            tokens_used=generated.tokens_used,
        )
