"""Invoice endpoints: list, classify-and-upsert, delete all."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from paymind.core.dependencies import get_invoice_service
from paymind.schemas.invoices import (
    InvoiceDeleteResponse,
    InvoiceRead,
    InvoiceUploadRequest,
    InvoiceUploadResponse,
)
from paymind.services.invoice_service import InvoiceService

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("", response_model=list[InvoiceRead])
def list_invoices(service: InvoiceService = Depends(get_invoice_service)) -> list[InvoiceRead]:
    return [InvoiceRead.model_validate(invoice) for invoice in service.list_invoices()]


@router.post("", response_model=InvoiceUploadResponse)
def upload_invoices(
    payload: InvoiceUploadRequest,
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceUploadResponse:
    invoices = service.bulk_upsert(payload.invoices)
    return InvoiceUploadResponse(
        message=f"Successfully processed {len(invoices)} invoices",
        count=len(invoices),
        invoices=[InvoiceRead.model_validate(invoice) for invoice in invoices],
    )


@router.delete("", response_model=InvoiceDeleteResponse)
def delete_invoices(service: InvoiceService = Depends(get_invoice_service)) -> InvoiceDeleteResponse:
    counts = service.delete_all_invoices_and_dependents()
    return InvoiceDeleteResponse(
        message="All invoices deleted",
        messages_deleted=counts["messages"],
        analyses_deleted=counts["response_analyses"],
        invoices_deleted=counts["invoices"],
    )
