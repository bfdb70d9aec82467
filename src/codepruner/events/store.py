"""Event store: append-only persistence of raw usage events per tenant."""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from codepruner.common.models import generate_uuid, utc_now
from codepruner.common.timeutil import ensure_utc
from codepruner.events.models import UsageEventModel
from codepruner.events.schemas import TrackedEvent


@dataclass
class EndpointUsage:
    """Call volume of one (method, route) pair inside a window."""
    method: str
    route: str
    call_count: int
    last_called_at: Optional[datetime]


class EventStore:
    """Queries over the ``usage_events`` table. All calls are tenant-scoped."""

    async def insert_many(
        self,
        session: AsyncSession,
        tenant_id: str,
        events: Iterable[TrackedEvent],
    ) -> int:
        received_at = utc_now()
        rows = [
            {
                "id": generate_uuid(),
                "tenant_id": tenant_id,
                "method": event.method,
                "route": event.route,
                "status_code": event.status_code,
                "timestamp": ensure_utc(event.timestamp) or received_at,
                "latency_ms": event.latency_ms,
            }
            for event in events
        ]
        if not rows:
            return 0
        await session.execute(insert(UsageEventModel), rows)
        return len(rows)

    async def distinct_routes(self, session: AsyncSession, tenant_id: str) -> set[str]:
        result = await session.execute(
            select(UsageEventModel.route)
            .where(UsageEventModel.tenant_id == tenant_id)
            .distinct()
        )
        return set(result.scalars().all())

    async def count(self, session: AsyncSession, tenant_id: str) -> int:
        result = await session.execute(
            select(func.count(UsageEventModel.id)).where(
                UsageEventModel.tenant_id == tenant_id
            )
        )
        return result.scalar() or 0

    async def delete_before(
        self, session: AsyncSession, tenant_id: str, cutoff: datetime
    ) -> int:
        """Delete events strictly older than ``cutoff``. Returns the row count."""
        result = await session.execute(
            delete(UsageEventModel).where(
                UsageEventModel.tenant_id == tenant_id,
                UsageEventModel.timestamp < cutoff,
            )
        )
        return result.rowcount or 0

    async def usage_since(
        self, session: AsyncSession, tenant_id: str, since: datetime
    ) -> list[EndpointUsage]:
        """Group events at or after ``since`` by (method, route)."""
        result = await session.execute(
            select(
                UsageEventModel.method,
                UsageEventModel.route,
                func.count(UsageEventModel.id).label("call_count"),
                func.max(UsageEventModel.timestamp).label("last_called_at"),
            )
            .where(
                UsageEventModel.tenant_id == tenant_id,
                UsageEventModel.timestamp >= since,
            )
            .group_by(UsageEventModel.method, UsageEventModel.route)
        )
        return [
            EndpointUsage(
                method=row.method,
                route=row.route,
                call_count=row.call_count or 0,
                last_called_at=ensure_utc(row.last_called_at),
            )
            for row in result
        ]
