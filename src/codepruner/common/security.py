"""API key authentication dependencies."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException


@dataclass
class TenantContext:
    """Resolved caller identity available to request handlers."""
    tenant_id: Optional[str] = None
    is_admin: bool = False

    def can_read(self, project_id: str) -> bool:
        return self.is_admin or self.tenant_id == project_id


def _extract_token(x_api_key: Optional[str], authorization: Optional[str]) -> str:
    if x_api_key:
        return x_api_key.strip()
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip()
    return ""


async def require_super_admin(
    x_admin_key: str = Header(..., alias="X-Admin-Key"),
) -> str:
    """FastAPI dependency that validates the super-admin key from header."""
    from codepruner.common.config import get_settings

    settings = get_settings()
    if x_admin_key != settings.super_admin_key:
        raise HTTPException(status_code=403, detail="Invalid super-admin key")
    return x_admin_key


async def require_admin(
    x_admin_key: str = Header(..., alias="X-Admin-Key"),
) -> str:
    """FastAPI dependency that validates the operator key from header."""
    from codepruner.common.config import get_settings

    settings = get_settings()
    if x_admin_key not in (settings.api_key, settings.super_admin_key):
        raise HTTPException(status_code=403, detail="Invalid admin key")
    return x_admin_key


async def require_project(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
    authorization: Optional[str] = Header(None),
    x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key"),
) -> TenantContext:
    """Resolve the calling project from ``X-API-Key`` or a bearer token.

    Operators holding the admin key get an admin context that may read any
    project. Unknown or inactive keys are rejected with 401.
    """
    from codepruner.common.config import get_settings

    settings = get_settings()
    if x_admin_key and x_admin_key in (settings.api_key, settings.super_admin_key):
        return TenantContext(is_admin=True)

    token = _extract_token(x_api_key, authorization)
    if not token:
        raise HTTPException(
            status_code=401,
            detail="Missing API key. Use X-API-Key or Authorization: Bearer <api-key>",
        )

    from codepruner.deps import get_db, get_tenant_service
    svc = get_tenant_service()
    db = get_db()
    async with db.get_session() as session:
        tenant = await svc.resolve_by_raw_key(session, token)
        if tenant is None or not tenant.active:
            raise HTTPException(status_code=401, detail="Invalid or inactive API key")
        return TenantContext(tenant_id=tenant.id)


async def require_tenant(ctx: TenantContext = Depends(require_project)) -> TenantContext:
    """Like :func:`require_project` but refuses admin contexts (ingestion needs a project)."""
    if ctx.tenant_id is None:
        raise HTTPException(status_code=401, detail="A project API key is required")
    return ctx


def check_project_access(ctx: TenantContext, project_id: str) -> None:
    if not ctx.can_read(project_id):
        raise HTTPException(status_code=403, detail="Unauthorized")
