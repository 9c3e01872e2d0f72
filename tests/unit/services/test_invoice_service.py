from __future__ import annotations

from datetime import date, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from paymind.core.exceptions import DatabaseError, ValidationError
from paymind.models import Invoice, Message, ResponseAnalysis
from paymind.models.enums import Channel, InvoiceStatus, Priority
from paymind.schemas.agents import ResponseAnalysisFields
from paymind.services.invoice_service import InvoiceService


def test_bulk_upsert_classifies_rows(db_session, make_row):
    service = InvoiceService(db=db_session)
    invoices = service.bulk_upsert(
        [
            make_row("INV-1", days_ago=95),
            make_row("INV-2", days_ago=30, amount_total=2000.0, amount_paid=500.0),
            make_row("INV-3", days_ago=5, status="paid"),
            make_row("INV-4", days_ago=-10),
        ]
    )

    by_id = {invoice.invoice_id: invoice for invoice in invoices}
    assert (by_id["INV-1"].days_overdue, by_id["INV-1"].priority) == (95, Priority.HIGH)
    assert (by_id["INV-2"].days_overdue, by_id["INV-2"].priority) == (30, Priority.HIGH)
    assert by_id["INV-3"].priority is None
    assert (by_id["INV-4"].days_overdue, by_id["INV-4"].priority) == (0, Priority.LOW)


def test_upsert_same_invoice_id_updates_in_place(db_session, make_row):
    service = InvoiceService(db=db_session)
    service.bulk_upsert([make_row("INV-1", days_ago=10, amount_total=100.0)])
    service.bulk_upsert(
        [make_row("INV-1", days_ago=70, amount_total=300.0, customer_name="Renamed", preferred_channel="sms")]
    )

    invoices = service.list_invoices()
    assert len(invoices) == 1
    invoice = invoices[0]
    assert invoice.customer_name == "Renamed"
    assert invoice.amount_total == 300.0
    assert invoice.preferred_channel == Channel.SMS
    assert invoice.days_overdue == 70
    assert invoice.priority == Priority.MEDIUM


def test_duplicate_ids_in_one_batch_keep_last_row(db_session, make_row):
    service = InvoiceService(db=db_session)
    service.bulk_upsert([make_row("INV-1", amount_total=100.0), make_row("INV-1", amount_total=250.0)])

    invoices = service.list_invoices()
    assert len(invoices) == 1
    assert invoices[0].amount_total == 250.0


def test_list_invoices_orders_by_due_date_and_refreshes_derived_fields(db_session, make_row):
    service = InvoiceService(db=db_session)
    long_ago = date.today() - timedelta(days=100)
    service.bulk_upsert(
        [make_row("INV-LATE", days_ago=5), make_row("INV-OLD", days_ago=100)],
        today=long_ago,
    )

    invoices = service.list_invoices()
    assert [invoice.invoice_id for invoice in invoices] == ["INV-OLD", "INV-LATE"]
    assert invoices[0].days_overdue == 100
    assert invoices[0].priority == Priority.HIGH
    assert invoices[1].days_overdue == 5


def test_reminder_candidates_are_overdue_or_disputed_most_overdue_first(db_session, make_row):
    service = InvoiceService(db=db_session)
    service.bulk_upsert(
        [
            make_row("INV-A", days_ago=10),
            make_row("INV-B", days_ago=80),
            make_row("INV-C", days_ago=-5, status="disputed"),
            make_row("INV-D", days_ago=200, status="paid"),
            make_row("INV-E", days_ago=-3),
        ]
    )

    candidates = service.list_reminder_candidates(limit=10)
    assert [invoice.invoice_id for invoice in candidates] == ["INV-B", "INV-A", "INV-C"]
    assert len(service.list_reminder_candidates(limit=2)) == 2


def test_list_by_invoice_ids_ignores_unknown_ids(db_session, make_row):
    service = InvoiceService(db=db_session)
    service.bulk_upsert([make_row("INV-1", days_ago=3), make_row("INV-2", days_ago=9)])

    invoices = service.list_by_invoice_ids(["INV-2", "INV-404"])
    assert [invoice.invoice_id for invoice in invoices] == ["INV-2"]
    assert service.list_by_invoice_ids([]) == []


def test_delete_all_removes_dependents_first(db_session, make_row):
    service = InvoiceService(db=db_session)
    service.bulk_upsert([make_row("INV-1", days_ago=40), make_row("INV-2", days_ago=2)])
    service.create_message("INV-1", Channel.EMAIL, "Please pay", subject="Reminder", priority="LOW")
    service.create_message("INV-2", "sms", "Pay now", priority="LOW")
    service.create_response_analysis("INV-1", "Paid yesterday", ResponseAnalysisFields(intent="already_paid"))

    counts = service.delete_all_invoices_and_dependents()

    assert counts == {"messages": 2, "response_analyses": 1, "invoices": 2}
    assert db_session.query(Message).count() == 0
    assert db_session.query(ResponseAnalysis).count() == 0
    assert db_session.query(Invoice).count() == 0


def test_create_response_analysis_serializes_lists(db_session):
    service = InvoiceService(db=db_session)
    fields = ResponseAnalysisFields.model_validate(
        {
            "intent": "request_delay",
            "intentConfidence": 80,
            "sentiment": "negative",
            "extractedInfo": [{"label": "date", "value": "2026-04-01"}],
            "suggestedActions": ["Offer installments"],
            "draftResponse": "We can split the payment.",
            "riskLevel": "high",
        }
    )

    record = service.create_response_analysis("INV-9", "Can we pay later?", fields)

    assert record.extracted_info == '[{"label": "date", "value": "2026-04-01"}]'
    assert record.suggested_actions == '["Offer installments"]'
    assert record.sentiment == "negative"
    assert record.risk_level == "high"


def test_persistence_failure_surfaces_generic_error(db_session, make_row, monkeypatch):
    service = InvoiceService(db=db_session)

    def _boom():
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db_session, "commit", _boom)

    with pytest.raises(DatabaseError, match="Failed to process invoices"):
        service.bulk_upsert([make_row("INV-1")])


def test_invoice_status_is_stored_as_enum(db_session, make_row):
    service = InvoiceService(db=db_session)
    service.bulk_upsert([make_row("INV-1", status="DISPUTED", preferred_channel="WhatsApp")])

    invoice = service.get_invoice("INV-1")
    assert invoice is not None
    assert invoice.status == InvoiceStatus.DISPUTED
    assert invoice.preferred_channel == Channel.WHATSAPP
    assert service.get_invoice("missing") is None


def test_invalid_row_is_reported_as_validation_error(db_session, make_row):
    service = InvoiceService(db=db_session)

    with pytest.raises(ValidationError, match="due_date"):
        service.bulk_upsert([make_row("INV-1"), make_row("INV-2", due_date="not-a-date")])

    assert service.list_invoices() == []
