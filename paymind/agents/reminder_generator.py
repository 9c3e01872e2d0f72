"""Reminder generator agent: one drafted message per overdue or disputed invoice."""

from __future__ import annotations

import logging

from paymind.agents.base_agent import BaseAgent
from paymind.core.config import get_config
from paymind.core.exceptions import ValidationError
from paymind.llm.parsing import extract_subject
from paymind.models import Invoice
from paymind.models.enums import Channel
from paymind.schemas.agents import GeneratedReminder, ReminderResponse

logger = logging.getLogger(__name__)


def reminder_context(invoice: Invoice) -> dict:
    return {
        "invoice_id": invoice.invoice_id,
        "customer_name": invoice.customer_name,
        "amount_due": invoice.amount_due,
        "amount_total": invoice.amount_total,
        "amount_paid": invoice.amount_paid,
        "due_date": invoice.due_date.isoformat(),
        "days_overdue": invoice.days_overdue or 0,
        "priority": invoice.priority.value if invoice.priority else None,
        "channel": invoice.preferred_channel.value,
        "customer_email": invoice.customer_email,
        "customer_phone": invoice.customer_phone,
        "status": invoice.status.value,
    }


class ReminderGeneratorAgent(BaseAgent):
    name = "reminder-generator"
    prompt_key = "reminder_generator"

    def select_invoices(self, invoice_ids: list[str] | None = None) -> list[Invoice]:
        if invoice_ids:
            return self.invoices.list_by_invoice_ids(invoice_ids)
        return self.invoices.list_reminder_candidates(limit=get_config().REMINDER_BATCH_SIZE)

    def generate_one(self, invoice: Invoice, language: str = "en") -> tuple[GeneratedReminder, int | None]:
        """Draft, persist and describe a reminder for a single invoice."""
        generated = self._generate(reminder_context(invoice), language)

        subject = None
        content = generated.content.strip()
        if invoice.preferred_channel == Channel.EMAIL:
            subject, content = extract_subject(generated.content)

        priority = invoice.priority.value if invoice.priority else None
        message = self.invoices.create_message(
            invoice_id=invoice.invoice_id,
            channel=invoice.preferred_channel,
            subject=subject,
            content=content,
            priority=priority,
        )
        reminder = GeneratedReminder(
            id=message.id,
            invoice_id=invoice.invoice_id,
            customer_name=invoice.customer_name,
            channel=invoice.preferred_channel,
            subject=subject,
            content=content,
            priority=priority,
            amount=round(invoice.amount_due, 2),
            days_overdue=invoice.days_overdue or 0,
        )
        return reminder, generated.tokens_used

    def generate(self, invoice_ids: list[str] | None = None, language: str = "en") -> ReminderResponse:
        invoices = self.select_invoices(invoice_ids)
        if not invoices:
            raise ValidationError("No invoices to process")

        reminders: list[GeneratedReminder] = []
        tokens_total: int | None = None
        # One provider call in flight at a time.
        for invoice in invoices:
            reminder, tokens_used = self.generate_one(invoice, language)
            reminders.append(reminder)
            if tokens_used is not None:
                tokens_total = (tokens_total or 0) + tokens_used

        logger.info(
            "agent.reminder_generator.completed",
            extra={"event": "agent.reminder_generator.completed", "count": len(reminders)},
        )
        return ReminderResponse(
            messages=reminders,
            count=len(reminders),
            provider=self.generator.provider.value,
            model=self.generator.model,
            tokens_used=tokens_total,
        )
