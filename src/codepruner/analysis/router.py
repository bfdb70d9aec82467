"""Endpoint status API router."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from codepruner.analysis.classifier import STATUSES
from codepruner.analysis.schemas import (
    AnalysisResponse,
    AnalysisSummary,
    EndpointListResponse,
    EndpointResponse,
    EndpointsByStatusResponse,
    RunAnalysisResponse,
    SummaryResponse,
    UsageResponse,
)
from codepruner.common.exceptions import AnalysisError, TenantNotFoundError
from codepruner.common.security import TenantContext, check_project_access, require_project

router = APIRouter()


def _get_store():
    from codepruner.deps import get_status_store
    return get_status_store()


def _get_aggregator():
    from codepruner.deps import get_aggregator
    return get_aggregator()


def _get_db():
    from codepruner.deps import get_db
    return get_db()


@router.get("/projects/{project_id}/endpoints", response_model=EndpointListResponse)
async def list_endpoints(
    project_id: str, ctx: TenantContext = Depends(require_project)
):
    check_project_access(ctx, project_id)
    store = _get_store()
    db = _get_db()
    async with db.get_session() as session:
        rows = await store.list_for_tenant(session, project_id)
        endpoints = [EndpointResponse.model_validate(r) for r in rows]
    return EndpointListResponse(
        project_id=project_id,
        total=len(endpoints),
        dead=sum(1 for e in endpoints if e.status == "dead"),
        risky=sum(1 for e in endpoints if e.status == "risky"),
        active=sum(1 for e in endpoints if e.status == "active"),
        endpoints=endpoints,
    )


@router.get(
    "/projects/{project_id}/endpoints/status/{status}",
    response_model=EndpointsByStatusResponse,
)
async def list_endpoints_by_status(
    project_id: str, status: str, ctx: TenantContext = Depends(require_project)
):
    check_project_access(ctx, project_id)
    status = status.lower()
    if status not in STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid status. Must be one of: {', '.join(STATUSES)}",
        )
    store = _get_store()
    db = _get_db()
    async with db.get_session() as session:
        rows = await store.list_for_tenant(session, project_id, status=status)
        endpoints = [EndpointResponse.model_validate(r) for r in rows]
    return EndpointsByStatusResponse(
        project_id=project_id, status=status, count=len(endpoints), endpoints=endpoints,
    )


@router.get("/projects/{project_id}/endpoints/summary", response_model=SummaryResponse)
async def endpoint_summary(
    project_id: str, ctx: TenantContext = Depends(require_project)
):
    check_project_access(ctx, project_id)
    store = _get_store()
    db = _get_db()
    async with db.get_session() as session:
        summary = await store.summary(session, project_id)
    return SummaryResponse(
        project_id=project_id,
        total=summary.total,
        dead=summary.counts["dead"],
        risky=summary.counts["risky"],
        active=summary.counts["active"],
        dead_percentage=summary.percentage("dead"),
        risky_percentage=summary.percentage("risky"),
        active_percentage=summary.percentage("active"),
        last_analyzed_at=summary.last_analyzed_at,
    )


@router.get("/projects/{project_id}/usage", response_model=UsageResponse)
async def project_usage(
    project_id: str, ctx: TenantContext = Depends(require_project)
):
    check_project_access(ctx, project_id)
    from codepruner.deps import get_event_store, get_plan_lookup

    try:
        plan = await get_plan_lookup().get(project_id)
    except TenantNotFoundError:
        raise HTTPException(status_code=404, detail="Project not found")

    events = get_event_store()
    db = _get_db()
    async with db.get_session() as session:
        event_count = await events.count(session, project_id)
        routes = await events.distinct_routes(session, project_id)
    return UsageResponse(
        project_id=project_id,
        plan=plan.name,
        event_count=event_count,
        distinct_routes=len(routes),
        max_distinct_routes=plan.max_distinct_routes,
        retention_days=plan.retention_days,
    )


@router.get("/analysis/{project_id}", response_model=AnalysisResponse)
async def get_analysis(
    project_id: str, ctx: TenantContext = Depends(require_project)
):
    check_project_access(ctx, project_id)
    store = _get_store()
    db = _get_db()
    async with db.get_session() as session:
        rows = await store.list_for_tenant(session, project_id)
        summary = await store.summary(session, project_id)
        endpoints = [EndpointResponse.model_validate(r) for r in rows]
    endpoints.sort(key=lambda e: e.call_count, reverse=True)
    return AnalysisResponse(
        project_id=project_id,
        summary=AnalysisSummary(
            total=summary.total,
            last_analyzed_at=summary.last_analyzed_at,
            **summary.counts,
        ),
        endpoints=endpoints,
    )


@router.post("/analysis/run-now/{project_id}", response_model=RunAnalysisResponse)
async def run_analysis_now(
    project_id: str, ctx: TenantContext = Depends(require_project)
):
    check_project_access(ctx, project_id)
    aggregator = _get_aggregator()
    try:
        analyzed = await aggregator.analyze_tenant(project_id)
    except AnalysisError as e:
        return JSONResponse(
            status_code=500,
            content=RunAnalysisResponse(
                success=False, message=e.message, code=e.code,
            ).model_dump(),
        )
    return RunAnalysisResponse(
        success=True, message="Analysis complete", analyzed=analyzed,
    )
