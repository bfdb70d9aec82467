"""Status store: latest classification snapshot per (tenant, method, route)."""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import case, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from codepruner.analysis.classifier import STATUS_PRIORITY, STATUSES
from codepruner.analysis.models import EndpointStatusModel
from codepruner.common.timeutil import ensure_utc

_PRIORITY = case(STATUS_PRIORITY, value=EndpointStatusModel.status, else_=len(STATUSES))


@dataclass
class StatusSummary:
    total: int
    counts: dict[str, int]
    last_analyzed_at: Optional[datetime]

    def percentage(self, status: str) -> float:
        """Share of endpoints in ``status``, rounded to 2 places; 0 when empty."""
        if self.total == 0:
            return 0
        return round(self.counts.get(status, 0) / self.total * 100, 2)


class StatusStore:
    """Reads and full-replace writes of ``endpoint_statuses``."""

    async def replace(
        self,
        session: AsyncSession,
        tenant_id: str,
        rows: Iterable[EndpointStatusModel],
    ) -> int:
        """Swap the tenant's whole status set for ``rows`` inside ``session``'s transaction."""
        await session.execute(
            delete(EndpointStatusModel).where(EndpointStatusModel.tenant_id == tenant_id)
        )
        rows = list(rows)
        session.add_all(rows)
        await session.flush()
        return len(rows)

    async def list_for_tenant(
        self,
        session: AsyncSession,
        tenant_id: str,
        status: Optional[str] = None,
    ) -> list[EndpointStatusModel]:
        """All endpoints ordered by status priority then call count,
        or one status ordered by call count."""
        query = select(EndpointStatusModel).where(
            EndpointStatusModel.tenant_id == tenant_id
        )
        if status is None:
            query = query.order_by(_PRIORITY)
        else:
            query = query.where(EndpointStatusModel.status == status)
        query = query.order_by(
            EndpointStatusModel.call_count.desc(),
            EndpointStatusModel.route,
            EndpointStatusModel.method,
        )
        result = await session.execute(query)
        return list(result.scalars().all())

    async def summary(self, session: AsyncSession, tenant_id: str) -> StatusSummary:
        result = await session.execute(
            select(
                EndpointStatusModel.status,
                func.count(EndpointStatusModel.id).label("n"),
                func.max(EndpointStatusModel.analyzed_at).label("last_analyzed_at"),
            )
            .where(EndpointStatusModel.tenant_id == tenant_id)
            .group_by(EndpointStatusModel.status)
        )
        counts = {status: 0 for status in STATUSES}
        last_analyzed_at = None
        for row in result:
            counts[row.status] = row.n
            analyzed = ensure_utc(row.last_analyzed_at)
            if analyzed and (last_analyzed_at is None or analyzed > last_analyzed_at):
                last_analyzed_at = analyzed
        return StatusSummary(
            total=sum(counts.values()),
            counts=counts,
            last_analyzed_at=last_analyzed_at,
        )
