"""Retention sweeper: deletes usage events past each tenant's plan horizon."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from codepruner.common.timeutil import utcnow
from codepruner.events.store import EventStore
from codepruner.plans.lookup import PlanLookup
from codepruner.tenants.service import TenantService

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    deleted: int = 0
    tenants: int = 0
    failures: dict[str, str] = field(default_factory=dict)


def retention_cutoff(now: datetime, retention_days: int) -> datetime:
    """Events with a timestamp strictly before this instant are expired."""
    return now - timedelta(days=retention_days)


class RetentionSweeper:
    """Plan-aware deletion of old events, isolated per tenant."""

    def __init__(
        self,
        db,
        plan_lookup: PlanLookup,
        store: EventStore | None = None,
        tenants: TenantService | None = None,
    ):
        self.db = db
        self.plan_lookup = plan_lookup
        self.store = store or EventStore()
        self.tenants = tenants or TenantService()

    async def sweep_tenant(self, tenant_id: str, now: Optional[datetime] = None) -> int:
        """Delete one tenant's expired events. Returns the number deleted."""
        now = now or utcnow()
        plan = await self.plan_lookup.get(tenant_id)
        cutoff = retention_cutoff(now, plan.retention_days)
        async with self.db.get_session() as session:
            deleted = await self.store.delete_before(session, tenant_id, cutoff)
        if deleted:
            logger.info(
                "Deleted %s logs (%s plan, retention: %s days)",
                deleted,
                plan.name,
                plan.retention_days,
                extra={"tenant_id": tenant_id},
            )
        return deleted

    async def sweep_all(self, now: Optional[datetime] = None) -> SweepReport:
        """Sweep every active tenant; a failing tenant counts zero and is skipped."""
        now = now or utcnow()
        async with self.db.get_session() as session:
            tenant_ids = await self.tenants.list_active_ids(session)

        report = SweepReport(tenants=len(tenant_ids))
        for tenant_id in tenant_ids:
            try:
                report.deleted += await self.sweep_tenant(tenant_id, now=now)
            except Exception as e:
                report.failures[tenant_id] = str(e)
                logger.exception(
                    "Error cleaning old logs", extra={"tenant_id": tenant_id}
                )

        logger.info(
            "Retention sweep complete: deleted %s total old log(s) across %s project(s)",
            report.deleted,
            report.tenants,
        )
        return report
