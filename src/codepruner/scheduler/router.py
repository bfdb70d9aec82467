"""Operator router for the maintenance cycle."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from codepruner.common.security import require_admin

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


class CycleResponse(BaseModel):
    success: bool
    message: str
    events_deleted: int = 0
    endpoints_analyzed: int = 0
    failed_projects: list[str] = []
    phase_errors: dict[str, str] = {}
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


def _get_scheduler():
    from codepruner.deps import get_scheduler
    return get_scheduler()


@router.post("/run", response_model=CycleResponse)
async def run_maintenance(_=Depends(require_admin)):
    report = await _get_scheduler().run_now()
    if report is None:
        return CycleResponse(success=False, message="Maintenance cycle already running")
    failed = sorted(set(report.sweep.failures) | set(report.analysis.failures))
    return CycleResponse(
        success=not report.phase_errors,
        message=(
            "Maintenance cycle complete"
            if not report.phase_errors
            else "Maintenance cycle finished with errors"
        ),
        phase_errors=report.phase_errors,
        events_deleted=report.events_deleted,
        endpoints_analyzed=report.endpoints_analyzed,
        failed_projects=failed,
        started_at=report.started_at,
        finished_at=report.finished_at,
    )


@router.get("/status")
async def maintenance_status(_=Depends(require_admin)):
    scheduler = _get_scheduler()
    return {
        "scheduled": scheduler.is_scheduled,
        "running": scheduler.is_running,
        "cron": scheduler.schedule,
    }
