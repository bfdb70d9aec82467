"""Project administration router (super-admin key)."""

from fastapi import APIRouter, Depends, HTTPException

from codepruner.common.security import require_super_admin
from codepruner.tenants.schemas import (
    ApiKeyResponse,
    TenantCreate,
    TenantCreateResponse,
    TenantResponse,
    TenantUpdate,
)

router = APIRouter(
    prefix="/tenants", tags=["tenants"], dependencies=[Depends(require_super_admin)]
)


def _get_service():
    from codepruner.deps import get_tenant_service
    return get_tenant_service()


def _get_db():
    from codepruner.deps import get_db
    return get_db()


@router.post("", response_model=TenantCreateResponse, status_code=201)
async def create_tenant(body: TenantCreate):
    svc = _get_service()
    async with _get_db().get_session() as session:
        if await svc.get_by_slug(session, body.slug) is not None:
            raise HTTPException(status_code=409, detail=f"Slug '{body.slug}' already in use")
        tenant, raw_key = await svc.create_tenant(
            session,
            name=body.name,
            slug=body.slug,
            plan=body.plan,
            description=body.description,
        )
        return TenantCreateResponse(
            **TenantResponse.model_validate(tenant).model_dump(),
            api_key=raw_key,
        )


@router.get("", response_model=list[TenantResponse])
async def list_tenants(include_inactive: bool = True):
    async with _get_db().get_session() as session:
        tenants = await _get_service().list_tenants(session, include_inactive=include_inactive)
        return [TenantResponse.model_validate(t) for t in tenants]


@router.get("/{tenant_id}", response_model=TenantResponse)
async def get_tenant(tenant_id: str):
    async with _get_db().get_session() as session:
        tenant = await _get_service().get_by_id(session, tenant_id)
        if tenant is None:
            raise HTTPException(status_code=404, detail="Project not found")
        return TenantResponse.model_validate(tenant)


@router.patch("/{tenant_id}", response_model=TenantResponse)
async def update_tenant(tenant_id: str, body: TenantUpdate):
    async with _get_db().get_session() as session:
        tenant = await _get_service().update_tenant(
            session, tenant_id, **body.model_dump(exclude_none=True)
        )
        if tenant is None:
            raise HTTPException(status_code=404, detail="Project not found")
        return TenantResponse.model_validate(tenant)


@router.post("/{tenant_id}/rotate-key", response_model=ApiKeyResponse)
async def rotate_key(tenant_id: str):
    async with _get_db().get_session() as session:
        raw_key = await _get_service().rotate_api_key(session, tenant_id)
    if raw_key is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return ApiKeyResponse(id=tenant_id, api_key=raw_key)


@router.delete("/{tenant_id}")
async def delete_tenant(tenant_id: str):
    async with _get_db().get_session() as session:
        found = await _get_service().deactivate(session, tenant_id)
    if not found:
        raise HTTPException(status_code=404, detail="Project not found")
    return {"success": True, "message": "Project deleted"}
