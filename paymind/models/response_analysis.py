"""Customer response analysis model module."""

from __future__ import annotations

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from paymind.models.base import Base, CreatedAtMixin


class ResponseAnalysis(Base, CreatedAtMixin):
    __tablename__ = "response_analyses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    invoice_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    customer_message: Mapped[str] = mapped_column(Text, nullable=False)
    intent: Mapped[str] = mapped_column(String(64), default="unknown", nullable=False)
    intent_confidence: Mapped[int] = mapped_column(Integer, default=50, nullable=False)
    sentiment: Mapped[str] = mapped_column(String(20), default="neutral", nullable=False)
    # JSON-encoded ordered lists.
    extracted_info: Mapped[str] = mapped_column(Text, default="[]", nullable=False)
    suggested_actions: Mapped[str] = mapped_column(Text, default="[]", nullable=False)
    draft_response: Mapped[str] = mapped_column(Text, default="", nullable=False)
    risk_level: Mapped[str] = mapped_column(String(20), default="medium", nullable=False)
