"""Pydantic schema for a single inbound tracking event."""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, StrictFloat, StrictInt, StrictStr, field_validator

HTTP_METHODS: frozenset[str] = frozenset({
    "GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS",
})


class TrackedEvent(BaseModel):
    """One observed HTTP call as emitted by the probe.

    Accepts the probe's camelCase keys (``statusCode``, ``latency``) as well
    as the snake_case field names.
    """

    model_config = {"populate_by_name": True, "extra": "ignore"}

    method: StrictStr = Field(..., min_length=1)
    route: StrictStr = Field(..., min_length=1)
    status_code: StrictInt = Field(
        ...,
        ge=100,
        le=599,
        validation_alias=AliasChoices("statusCode", "status_code"),
    )
    timestamp: Optional[datetime] = None
    latency_ms: StrictFloat = Field(
        default=0.0,
        ge=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("latency", "latencyMs", "latency_ms"),
    )

    @field_validator("method")
    @classmethod
    def _normalize_method(cls, value: str) -> str:
        method = value.upper()
        if method not in HTTP_METHODS:
            raise ValueError(f"invalid HTTP method '{value}'")
        return method
