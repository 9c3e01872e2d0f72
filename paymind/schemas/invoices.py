"""Invoice request/response schemas for API contracts."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from paymind.models.enums import Channel, InvoiceStatus, Priority
from paymind.schemas.common import CamelModel
from paymind.utils.validators import coerce_amount, sanitize_text


class InvoiceRow(BaseModel):
    """One raw uploaded invoice row, keyed by the CSV column names."""

    invoice_id: str = Field(min_length=1, max_length=64)
    customer_name: str = Field(min_length=1, max_length=255)
    amount_total: float = 0.0
    amount_paid: float = 0.0
    due_date: date
    status: InvoiceStatus = InvoiceStatus.OPEN
    preferred_channel: Channel = Channel.EMAIL
    customer_email: str = ""
    customer_phone: str = ""

    @field_validator("amount_total", "amount_paid", mode="before")
    @classmethod
    def parse_amount(cls, value: object) -> float:
        return coerce_amount(value)

    @field_validator("status", "preferred_channel", mode="before")
    @classmethod
    def normalize_enum_text(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("invoice_id", "customer_name", "customer_email", "customer_phone", mode="before")
    @classmethod
    def clean_text(cls, value: object) -> str:
        return sanitize_text(None if value is None else str(value), max_len=255)


class InvoiceUploadRequest(BaseModel):
    invoices: list[InvoiceRow]


class InvoiceRead(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_id: str
    customer_name: str
    customer_email: str = ""
    customer_phone: str = ""
    amount_total: float
    amount_paid: float
    due_date: date
    status: InvoiceStatus
    preferred_channel: Channel
    days_overdue: int = 0
    priority: Priority | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @computed_field(alias="amountDue")
    @property
    def amount_due(self) -> float:
        return round(self.amount_total - self.amount_paid, 2)


class InvoiceUploadResponse(CamelModel):
    message: str
    count: int
    invoices: list[InvoiceRead]


class InvoiceDeleteResponse(CamelModel):
    message: str
    messages_deleted: int = 0
    analyses_deleted: int = 0
    invoices_deleted: int = 0


class PriorityBreakdown(CamelModel):
    high: int = 0
    medium: int = 0
    low: int = 0


class AggregateStats(CamelModel):
    total_invoices: int = 0
    overdue_invoices: int = 0
    disputed_invoices: int = 0
    total_credits: float = 0.0
    overdue_amount: float = 0.0
    by_priority: PriorityBreakdown = Field(default_factory=PriorityBreakdown)
    avg_days_overdue: int = 0
