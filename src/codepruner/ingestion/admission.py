"""Admission control: validation plus per-plan route cardinality limits."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional

from codepruner.events.schemas import TrackedEvent
from codepruner.events.store import EventStore
from codepruner.events.writer import EventWriter
from codepruner.ingestion.validator import validate_batch
from codepruner.plans.lookup import PlanLookup

logger = logging.getLogger(__name__)


@dataclass
class AdmissionResult:
    """Outcome of admitting one batch."""
    admitted: list[TrackedEvent]
    received: int
    dropped_routes: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.admitted)

    @property
    def dropped(self) -> int:
        return self.received - len(self.admitted)


def limit_new_routes(
    events: list[TrackedEvent],
    existing_routes: Iterable[str],
    max_distinct_routes: Optional[int],
) -> AdmissionResult:
    """Drop events for new routes that do not fit under the route limit.

    Events for already-known routes always pass. New routes claim the
    remaining slots in the order they first appear in the batch.
    """
    if max_distinct_routes is None:
        return AdmissionResult(admitted=list(events), received=len(events))

    existing = set(existing_routes)
    new_routes: list[str] = []
    for event in events:
        if event.route not in existing and event.route not in new_routes:
            new_routes.append(event.route)

    slots = max(0, max_distinct_routes - len(existing))
    if len(new_routes) <= slots:
        return AdmissionResult(admitted=list(events), received=len(events))

    allowed = existing | set(new_routes[:slots])
    return AdmissionResult(
        admitted=[e for e in events if e.route in allowed],
        received=len(events),
        dropped_routes=new_routes[slots:],
    )


class AdmissionController:
    """Validate, limit and dispatch tracking batches for one tenant."""

    def __init__(
        self,
        db,
        plan_lookup: PlanLookup,
        writer: EventWriter,
        store: EventStore | None = None,
    ):
        self.db = db
        self.plan_lookup = plan_lookup
        self.writer = writer
        self.store = store or EventStore()

    async def admit(
        self,
        tenant_id: str,
        payload: Any,
        received_at: Optional[datetime] = None,
    ) -> AdmissionResult:
        """Admit a payload and queue the admitted events for writing.

        Raises BatchValidationError if any item is invalid. Returns as soon
        as the events are queued; the write itself is not awaited.
        """
        events = validate_batch(payload, received_at=received_at)

        plan = await self.plan_lookup.get(tenant_id)
        existing: set[str] = set()
        if plan.is_route_limited:
            async with self.db.get_session() as session:
                existing = await self.store.distinct_routes(session, tenant_id)

        result = limit_new_routes(events, existing, plan.max_distinct_routes)
        if result.dropped_routes:
            logger.warning(
                "Project hit %s plan endpoint limit (%s). Allowed %s/%s logs",
                plan.name,
                plan.max_distinct_routes,
                result.count,
                result.received,
                extra={"tenant_id": tenant_id, "dropped_routes": result.dropped_routes},
            )

        if result.admitted:
            self.writer.submit(tenant_id, result.admitted)
        return result
