"""Common schema module."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys; accepts either casing on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class APIEnvelope(CamelModel):
    success: bool = True
    message: str | None = None


class ErrorEnvelope(BaseModel):
    error: str
