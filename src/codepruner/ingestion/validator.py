"""Tracking payload validation.

A payload is either one event object or a non-empty array of them. The
batch is validated as a whole: the first invalid item rejects everything.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from codepruner.common.exceptions import BatchValidationError
from codepruner.common.timeutil import ensure_utc, utcnow
from codepruner.events.schemas import TrackedEvent

_BATCH = TypeAdapter(list[TrackedEvent])


def normalize_payload(payload: Any) -> list[Any]:
    """Wrap a bare object into a batch of one; reject anything else."""
    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, list) and payload:
        return payload
    raise BatchValidationError("Payload must be an object or non-empty array")


def _describe(error: dict[str, Any]) -> BatchValidationError:
    loc = error.get("loc", ())
    index = loc[0] if loc and isinstance(loc[0], int) else None
    field = str(loc[1]) if len(loc) > 1 else None

    if error.get("type") == "missing":
        message = f"Item {index}: Missing required field '{field}'"
    elif field is None:
        message = f"Item {index}: must be an object"
    else:
        message = f"Item {index}: '{field}' {error.get('msg', 'is invalid')}"
    return BatchValidationError(message, index=index, field=field)


def validate_batch(
    payload: Any, received_at: Optional[datetime] = None
) -> list[TrackedEvent]:
    """Validate a tracking payload and return normalized events.

    Methods come back uppercased, timestamps in UTC, and events without a
    timestamp are stamped with ``received_at`` (defaults to now).
    """
    items = normalize_payload(payload)
    try:
        events = _BATCH.validate_python(items)
    except ValidationError as exc:
        raise _describe(exc.errors()[0]) from exc

    received_at = received_at or utcnow()
    for event in events:
        event.timestamp = ensure_utc(event.timestamp) or received_at
    return events
