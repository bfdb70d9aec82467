"""Tenant (project) service: API key issuance and resolution, plan changes
and the active-tenant listing used by maintenance.
"""

import hashlib
import logging
import secrets

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from codepruner.plans.catalogue import DEFAULT_PLAN
from codepruner.tenants.models import TenantModel

logger = logging.getLogger(__name__)

API_KEY_PREFIX = "cp_"


def generate_api_key() -> str:
    return API_KEY_PREFIX + secrets.token_hex(32)


def hash_api_key(raw_key: str) -> str:
    """SHA-256 hash of a raw API key for storage."""
    return hashlib.sha256(raw_key.encode()).hexdigest()


class TenantService:
    """Project records as the ingestion and maintenance pipeline sees them."""

    async def create_tenant(
        self,
        session: AsyncSession,
        name: str,
        slug: str,
        plan: str = DEFAULT_PLAN,
        description: str = "",
    ) -> tuple[TenantModel, str]:
        """Create a project and its API key. Returns (model, raw_api_key)."""
        raw_api_key = generate_api_key()
        tenant = TenantModel(
            name=name.strip(),
            slug=slug,
            description=description,
            api_key_hash=hash_api_key(raw_api_key),
            plan=plan,
            active=True,
        )
        session.add(tenant)
        await session.flush()
        logger.info("Project created", extra={"tenant_id": tenant.id, "plan": plan})
        return tenant, raw_api_key

    async def get_by_id(
        self, session: AsyncSession, tenant_id: str
    ) -> TenantModel | None:
        return await session.get(TenantModel, tenant_id)

    async def get_by_slug(
        self, session: AsyncSession, slug: str
    ) -> TenantModel | None:
        result = await session.execute(
            select(TenantModel).where(TenantModel.slug == slug)
        )
        return result.scalar_one_or_none()

    async def list_tenants(
        self, session: AsyncSession, include_inactive: bool = True
    ) -> list[TenantModel]:
        query = select(TenantModel).order_by(TenantModel.created_at.desc())
        if not include_inactive:
            query = query.where(TenantModel.active.is_(True))
        result = await session.execute(query)
        return list(result.scalars().all())

    async def list_active_ids(self, session: AsyncSession) -> list[str]:
        """Ids of every active project, oldest first; the maintenance cycle's work list."""
        result = await session.execute(
            select(TenantModel.id)
            .where(TenantModel.active.is_(True))
            .order_by(TenantModel.created_at)
        )
        return list(result.scalars().all())

    async def update_tenant(
        self, session: AsyncSession, tenant_id: str, **updates
    ) -> TenantModel | None:
        """Apply name/description/plan/active changes.

        A plan change needs no further action: plan lookups read this row on
        every admission and sweep.
        """
        tenant = await self.get_by_id(session, tenant_id)
        if tenant is None:
            return None
        if updates.get("plan") and updates["plan"] != tenant.plan:
            logger.info(
                "Plan changed %s -> %s", tenant.plan, updates["plan"],
                extra={"tenant_id": tenant_id},
            )
        for field in ("name", "description", "plan", "active"):
            if updates.get(field) is not None:
                setattr(tenant, field, updates[field])
        await session.flush()
        return tenant

    async def deactivate(self, session: AsyncSession, tenant_id: str) -> bool:
        """Soft delete. Events and statuses stay until retention removes them."""
        tenant = await self.get_by_id(session, tenant_id)
        if tenant is None:
            return False
        tenant.active = False
        await session.flush()
        return True

    async def rotate_api_key(
        self, session: AsyncSession, tenant_id: str
    ) -> str | None:
        """Replace the project's key; the old key stops resolving immediately."""
        tenant = await self.get_by_id(session, tenant_id)
        if tenant is None:
            return None
        raw_api_key = generate_api_key()
        tenant.api_key_hash = hash_api_key(raw_api_key)
        await session.flush()
        return raw_api_key

    async def resolve_by_raw_key(
        self, session: AsyncSession, raw_api_key: str
    ) -> TenantModel | None:
        """Resolve a project from a raw API key by hashing and looking up."""
        result = await session.execute(
            select(TenantModel).where(
                TenantModel.api_key_hash == hash_api_key(raw_api_key)
            )
        )
        return result.scalar_one_or_none()
