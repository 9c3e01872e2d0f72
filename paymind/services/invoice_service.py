"""Invoice store: upsert with classification, listing, and cascade deletion."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from paymind.core.exceptions import ValidationError
from paymind.models import Invoice, Message, ResponseAnalysis
from paymind.models.enums import Channel, InvoiceStatus, MessageStatus
from paymind.schemas.agents import ResponseAnalysisFields
from paymind.schemas.invoices import InvoiceRow
from paymind.services.base_service import BaseService
from paymind.services.priority import classify

logger = logging.getLogger(__name__)


class InvoiceService(BaseService):
    """Service for invoice persistence and the records derived from invoices."""

    def _today(self) -> date:
        return date.today()

    def _refresh_derived(self, invoice: Invoice, today: date | datetime) -> bool:
        days_overdue, priority = classify(
            invoice.status,
            invoice.due_date,
            invoice.amount_total,
            invoice.amount_paid,
            today,
        )
        changed = invoice.days_overdue != days_overdue or invoice.priority != priority
        invoice.days_overdue = days_overdue
        invoice.priority = priority
        return changed

    def list_invoices(self, today: date | datetime | None = None) -> list[Invoice]:
        """All invoices by due date ascending, with derived fields brought up to date."""
        try:
            invoices = self.db.query(Invoice).order_by(Invoice.due_date.asc(), Invoice.id.asc()).all()
            today = today or self._today()
            stale = [invoice for invoice in invoices if self._refresh_derived(invoice, today)]
            if stale:
                self.commit()
            return invoices
        except SQLAlchemyError as exc:
            raise self._fail("fetch invoices", exc) from exc

    def get_invoice(self, invoice_id: str) -> Invoice | None:
        try:
            return self.db.query(Invoice).filter(Invoice.invoice_id == invoice_id).first()
        except SQLAlchemyError as exc:
            raise self._fail("fetch invoice", exc) from exc

    def list_by_invoice_ids(self, invoice_ids: Iterable[str]) -> list[Invoice]:
        ids = [invoice_id for invoice_id in invoice_ids if invoice_id]
        if not ids:
            return []
        self.list_invoices()
        try:
            return (
                self.db.query(Invoice)
                .filter(Invoice.invoice_id.in_(ids))
                .order_by(Invoice.days_overdue.desc(), Invoice.id.asc())
                .all()
            )
        except SQLAlchemyError as exc:
            raise self._fail("fetch invoices", exc) from exc

    def list_reminder_candidates(self, limit: int = 10) -> list[Invoice]:
        """Open overdue or disputed invoices, most overdue first."""
        self.list_invoices()
        try:
            return (
                self.db.query(Invoice)
                .filter(
                    or_(
                        (Invoice.status == InvoiceStatus.OPEN) & (Invoice.days_overdue > 0),
                        Invoice.status == InvoiceStatus.DISPUTED,
                    )
                )
                .order_by(Invoice.days_overdue.desc(), Invoice.id.asc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as exc:
            raise self._fail("fetch invoices", exc) from exc

    def bulk_upsert(
        self,
        rows: Iterable[InvoiceRow | Mapping[str, Any]],
        today: date | datetime | None = None,
    ) -> list[Invoice]:
        """Classify each row and insert or update it in place by ``invoice_id``."""
        today = today or self._today()
        try:
            parsed = [row if isinstance(row, InvoiceRow) else InvoiceRow.model_validate(row) for row in rows]
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            raise ValidationError(f"Invalid invoice row: {field}: {first.get('msg')}") from exc
        try:
            results: list[Invoice] = []
            pending: dict[str, Invoice] = {}
            for row in parsed:
                invoice = pending.get(row.invoice_id) or self.get_invoice(row.invoice_id)
                if invoice is None:
                    invoice = Invoice(invoice_id=row.invoice_id)
                    self.db.add(invoice)
                invoice.customer_name = row.customer_name
                invoice.customer_email = row.customer_email
                invoice.customer_phone = row.customer_phone
                invoice.amount_total = row.amount_total
                invoice.amount_paid = row.amount_paid
                invoice.due_date = row.due_date
                invoice.status = row.status
                invoice.preferred_channel = row.preferred_channel
                self._refresh_derived(invoice, today)
                pending[row.invoice_id] = invoice
                results.append(invoice)
            self.commit()
        except SQLAlchemyError as exc:
            raise self._fail("process invoices", exc) from exc

        logger.info(
            "invoices.upserted",
            extra={"event": "invoices.upserted", "count": len(results)},
        )
        return results

    def delete_all_invoices_and_dependents(self) -> dict[str, int]:
        """Delete messages, then response analyses, then invoices."""
        try:
            messages = self.db.query(Message).delete(synchronize_session=False)
            analyses = self.db.query(ResponseAnalysis).delete(synchronize_session=False)
            invoices = self.db.query(Invoice).delete(synchronize_session=False)
            self.commit()
        except SQLAlchemyError as exc:
            raise self._fail("delete invoices", exc) from exc

        logger.info(
            "invoices.deleted",
            extra={"event": "invoices.deleted", "count": invoices},
        )
        return {"messages": messages, "response_analyses": analyses, "invoices": invoices}

    def create_message(
        self,
        invoice_id: str,
        channel: Channel | str,
        content: str,
        subject: str | None = None,
        priority: str | None = None,
    ) -> Message:
        message = Message(
            invoice_id=invoice_id,
            channel=Channel(channel).value,
            subject=subject,
            content=content,
            priority=priority,
            status=MessageStatus.DRAFT.value,
        )
        try:
            self.db.add(message)
            self.commit()
            self.db.refresh(message)
        except SQLAlchemyError as exc:
            raise self._fail("save message", exc) from exc
        return message

    def list_messages(self, invoice_id: str | None = None) -> list[Message]:
        try:
            query = self.db.query(Message)
            if invoice_id:
                query = query.filter(Message.invoice_id == invoice_id)
            return query.order_by(Message.created_at.asc(), Message.id.asc()).all()
        except SQLAlchemyError as exc:
            raise self._fail("fetch messages", exc) from exc

    def create_response_analysis(
        self,
        invoice_id: str,
        customer_message: str,
        fields: ResponseAnalysisFields,
    ) -> ResponseAnalysis:
        record = ResponseAnalysis(
            invoice_id=invoice_id,
            customer_message=customer_message,
            intent=fields.intent,
            intent_confidence=fields.intent_confidence,
            sentiment=fields.sentiment.value,
            extracted_info=json.dumps([item.model_dump() for item in fields.extracted_info]),
            suggested_actions=json.dumps(fields.suggested_actions),
            draft_response=fields.draft_response,
            risk_level=fields.risk_level.value,
        )
        try:
            self.db.add(record)
            self.commit()
            self.db.refresh(record)
        except SQLAlchemyError as exc:
            raise self._fail("save response analysis", exc) from exc
        return record
