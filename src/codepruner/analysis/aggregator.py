"""Aggregator: classifies each (method, route) of a tenant from recent usage."""

import asyncio
import logging
import weakref
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from codepruner.analysis.classifier import LOOKBACK_DAYS, STATUSES, classify
from codepruner.analysis.models import EndpointStatusModel
from codepruner.analysis.store import StatusStore
from codepruner.common.exceptions import AnalysisError
from codepruner.common.timeutil import utcnow
from codepruner.events.store import EventStore
from codepruner.tenants.service import TenantService

logger = logging.getLogger(__name__)


@dataclass
class AnalysisReport:
    analyzed: int = 0
    tenants: int = 0
    failures: dict[str, str] = field(default_factory=dict)


class Aggregator:
    """Rebuilds a tenant's endpoint status set from the lookback window.

    Runs for the same tenant are serialized by an in-process lock; across
    processes the last writer wins.
    """

    def __init__(
        self,
        db,
        events: EventStore | None = None,
        statuses: StatusStore | None = None,
        tenants: TenantService | None = None,
    ):
        self.db = db
        self.events = events or EventStore()
        self.statuses = statuses or StatusStore()
        self.tenants = tenants or TenantService()
        # An entry lives only while some run holds or awaits its lock.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, tenant_id: str) -> asyncio.Lock:
        lock = self._locks.get(tenant_id)
        if lock is None:
            lock = self._locks[tenant_id] = asyncio.Lock()
        return lock

    async def analyze_tenant(self, tenant_id: str, now: Optional[datetime] = None) -> int:
        """Recompute and replace one tenant's statuses. Returns the endpoint count.

        Prior rows are deleted and new rows inserted in one transaction, so
        readers see either the old snapshot or the new one.
        """
        now = now or utcnow()
        since = now - timedelta(days=LOOKBACK_DAYS)

        try:
            async with self._lock_for(tenant_id):
                async with self.db.get_session() as session:
                    usage = await self.events.usage_since(session, tenant_id, since)
                    rows = [
                        EndpointStatusModel(
                            tenant_id=tenant_id,
                            method=u.method,
                            route=u.route,
                            status=classify(u.call_count),
                            call_count=u.call_count,
                            last_called_at=u.last_called_at if u.call_count else None,
                            analyzed_at=now,
                        )
                        for u in usage
                    ]
                    await self.statuses.replace(session, tenant_id, rows)
        except Exception as e:
            raise AnalysisError(f"Error analyzing project {tenant_id}: {e}") from e

        counts = Counter(row.status for row in rows)
        logger.info(
            "Analyzed %s endpoints (dead: %s, risky: %s, active: %s)",
            len(rows),
            *(counts.get(s, 0) for s in STATUSES),
            extra={"tenant_id": tenant_id},
        )
        return len(rows)

    async def analyze_all(self, now: Optional[datetime] = None) -> AnalysisReport:
        """Analyze every active tenant; a failing tenant counts zero and is skipped."""
        now = now or utcnow()
        async with self.db.get_session() as session:
            tenant_ids = await self.tenants.list_active_ids(session)

        report = AnalysisReport(tenants=len(tenant_ids))
        for tenant_id in tenant_ids:
            try:
                report.analyzed += await self.analyze_tenant(tenant_id, now=now)
            except AnalysisError as e:
                report.failures[tenant_id] = e.message
                logger.exception(e.message, extra={"tenant_id": tenant_id})

        logger.info(
            "Endpoint analysis complete: %s endpoint(s) across %s project(s)",
            report.analyzed,
            report.tenants,
        )
        return report
