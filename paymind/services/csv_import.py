"""Parser for the invoice CSV upload format."""

from __future__ import annotations

import io
import logging

import pandas as pd

from paymind.core.exceptions import ValidationError
from paymind.utils.validators import coerce_amount

logger = logging.getLogger(__name__)

CSV_COLUMNS = (
    "invoice_id",
    "customer_name",
    "amount_total",
    "amount_paid",
    "due_date",
    "status",
    "preferred_channel",
    "customer_email",
    "customer_phone",
)
REQUIRED_COLUMNS = ("invoice_id", "customer_name", "due_date")
AMOUNT_COLUMNS = ("amount_total", "amount_paid")


def parse_invoice_csv(text: str) -> list[dict]:
    """Turn CSV text into upload rows keyed by the header names.

    Blank lines are skipped and every cell is stripped. Amount cells that do
    not parse as numbers become ``0.0``. Unknown columns are ignored.
    """
    text = text.lstrip("\ufeff")
    if not text.strip():
        return []

    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
        )
    except pd.errors.ParserError as exc:
        raise ValidationError(f"Malformed CSV: {exc}") from exc

    df.columns = [str(column).strip() for column in df.columns]
    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise ValidationError(f"CSV is missing required columns: {', '.join(missing)}")

    for column in CSV_COLUMNS:
        if column not in df.columns:
            df[column] = ""
    df = df[list(CSV_COLUMNS)].fillna("").astype(str)
    for column in CSV_COLUMNS:
        df[column] = df[column].str.strip()
    df = df[(df != "").any(axis=1)].copy()

    df.loc[df["status"] == "", "status"] = "open"
    df.loc[df["preferred_channel"] == "", "preferred_channel"] = "email"

    rows = df.to_dict(orient="records")
    for row in rows:
        for column in AMOUNT_COLUMNS:
            row[column] = coerce_amount(row[column])

    logger.info("csv.parsed", extra={"event": "csv.parsed", "count": len(rows)})
    return rows
