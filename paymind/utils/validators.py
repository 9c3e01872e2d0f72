"""Deterministic sanitizers and coercions used across services and agents."""

from __future__ import annotations

import math
from typing import Any


def sanitize_text(value: str | None, max_len: int = 20000) -> str:
    """Sanitize free-form content before persistence/display."""
    if value is None:
        return ""
    cleaned = str(value).replace("\x00", "").strip()
    cleaned = cleaned[:max_len]
    return cleaned


def coerce_amount(value: Any) -> float:
    """Parse a monetary cell as float, defaulting to 0 on failure."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(str(value).strip())
    except ValueError:
        return 0.0
    if not math.isfinite(amount):
        return 0.0
    return amount
