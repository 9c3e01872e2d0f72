"""Invoice prioritization rules.

Derives ``days_overdue`` and the three-tier priority from raw invoice fields.
The same inputs (including ``today``) always produce the same result; the
classification of a stored invoice drifts as the calendar advances, which is
why the invoice store recomputes it on upsert and on read.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time

from paymind.models.enums import InvoiceStatus, Priority

HIGH_PRIORITY_DAYS = 90
MEDIUM_PRIORITY_DAYS = 60
HIGH_PRIORITY_AMOUNT = 1000

SECONDS_PER_DAY = 86400


def compute_days_overdue(due_date: date, today: date | datetime) -> int:
    """Whole days past ``due_date``, rounded up and clamped to zero."""
    if isinstance(today, datetime):
        due_start = datetime.combine(due_date, time.min, tzinfo=today.tzinfo)
        elapsed = (today - due_start).total_seconds() / SECONDS_PER_DAY
        days = math.ceil(elapsed)
    else:
        days = (today - due_date).days
    return max(0, days)


def classify(
    status: InvoiceStatus | str,
    due_date: date,
    amount_total: float,
    amount_paid: float,
    today: date | datetime,
) -> tuple[int, Priority | None]:
    """Return ``(days_overdue, priority)`` for one invoice."""
    status = InvoiceStatus(status)
    days_overdue = compute_days_overdue(due_date, today)

    if status == InvoiceStatus.PAID:
        return days_overdue, None

    amount_due = float(amount_total or 0) - float(amount_paid or 0)
    if (
        status == InvoiceStatus.DISPUTED
        or days_overdue > HIGH_PRIORITY_DAYS
        or amount_due > HIGH_PRIORITY_AMOUNT
    ):
        return days_overdue, Priority.HIGH
    if days_overdue > MEDIUM_PRIORITY_DAYS:
        return days_overdue, Priority.MEDIUM
    return days_overdue, Priority.LOW
