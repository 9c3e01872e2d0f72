"""Invoice model module."""

from __future__ import annotations

from datetime import date

from sqlalchemy import Date, Enum, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from paymind.models.base import AuditMixin, Base
from paymind.models.enums import Channel, InvoiceStatus, Priority


class Invoice(Base, AuditMixin):
    __tablename__ = "invoices"
    __table_args__ = (Index("idx_invoices_status_overdue", "status", "days_overdue"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    invoice_id: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    amount_total: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0, nullable=False)
    amount_paid: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, index=True, nullable=False)
    status: Mapped[InvoiceStatus] = mapped_column(
        Enum(InvoiceStatus, values_callable=lambda e: [m.value for m in e], native_enum=False),
        default=InvoiceStatus.OPEN,
        nullable=False,
    )
    preferred_channel: Mapped[Channel] = mapped_column(
        Enum(Channel, values_callable=lambda e: [m.value for m in e], native_enum=False),
        default=Channel.EMAIL,
        nullable=False,
    )
    days_overdue: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    priority: Mapped[Priority | None] = mapped_column(
        Enum(Priority, values_callable=lambda e: [m.value for m in e], native_enum=False),
        nullable=True,
    )

    @property
    def amount_due(self) -> float:
        return float(self.amount_total or 0) - float(self.amount_paid or 0)
