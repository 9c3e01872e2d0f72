"""Aggregate statistics derived from an invoice snapshot."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from paymind.models.enums import InvoiceStatus, Priority
from paymind.schemas.invoices import AggregateStats, PriorityBreakdown


def _amount_due(invoice: Any) -> float:
    return float(invoice.amount_total or 0) - float(invoice.amount_paid or 0)


def is_overdue(invoice: Any) -> bool:
    return invoice.status == InvoiceStatus.OPEN and (invoice.days_overdue or 0) > 0


def is_reminder_candidate(invoice: Any) -> bool:
    return is_overdue(invoice) or invoice.status == InvoiceStatus.DISPUTED


def compute_stats(invoices: Iterable[Any]) -> AggregateStats:
    """Counts and amounts over invoices; works on ORM rows and ``InvoiceRead`` alike."""
    invoices = list(invoices)
    overdue = [invoice for invoice in invoices if is_overdue(invoice)]
    disputed = [invoice for invoice in invoices if invoice.status == InvoiceStatus.DISPUTED]

    avg_days = 0
    if overdue:
        avg_days = round(sum(invoice.days_overdue or 0 for invoice in overdue) / len(overdue))

    return AggregateStats(
        total_invoices=len(invoices),
        overdue_invoices=len(overdue),
        disputed_invoices=len(disputed),
        total_credits=round(sum(_amount_due(invoice) for invoice in invoices), 2),
        overdue_amount=round(sum(_amount_due(invoice) for invoice in overdue), 2),
        by_priority=PriorityBreakdown(
            high=sum(1 for invoice in invoices if invoice.priority == Priority.HIGH),
            medium=sum(1 for invoice in invoices if invoice.priority == Priority.MEDIUM),
            low=sum(1 for invoice in invoices if invoice.priority == Priority.LOW),
        ),
        avg_days_overdue=avg_days,
    )
