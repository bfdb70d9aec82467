"""Plan lookup capability used by admission and retention decisions."""

from typing import Mapping, Protocol

from sqlalchemy import select

from codepruner.common.exceptions import TenantNotFoundError
from codepruner.plans.catalogue import Plan, resolve_plan
from codepruner.tenants.models import TenantModel


class PlanLookup(Protocol):
    """Resolve the current plan of a tenant.

    Implementations must not cache: each call reflects the plan as it is now.
    """

    async def get(self, tenant_id: str) -> Plan: ...


class TenantPlanLookup:
    """Reads the plan column of the tenant row on every call."""

    def __init__(self, db):
        self.db = db

    async def get(self, tenant_id: str) -> Plan:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(TenantModel.plan).where(TenantModel.id == tenant_id)
            )
            row = result.first()
        if row is None:
            raise TenantNotFoundError(f"Project {tenant_id} not found")
        return resolve_plan(row.plan)


class StaticPlanLookup:
    """Mapping-backed lookup for embedding and tests."""

    def __init__(self, plans: Mapping[str, Plan], default: Plan | None = None):
        self.plans = plans
        self.default = default

    async def get(self, tenant_id: str) -> Plan:
        plan = self.plans.get(tenant_id, self.default)
        if plan is None:
            raise TenantNotFoundError(f"Project {tenant_id} not found")
        return plan
