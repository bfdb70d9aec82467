"""Pydantic schemas for endpoint status responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from codepruner.common.timeutil import ensure_utc


class EndpointResponse(BaseModel):
    method: str
    route: str
    status: str
    call_count: int
    last_called_at: Optional[datetime] = None
    analyzed_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("last_called_at", "analyzed_at")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class EndpointListResponse(BaseModel):
    project_id: str
    total: int
    dead: int
    risky: int
    active: int
    endpoints: list[EndpointResponse]


class EndpointsByStatusResponse(BaseModel):
    project_id: str
    status: str
    count: int
    endpoints: list[EndpointResponse]


class SummaryResponse(BaseModel):
    project_id: str
    total: int
    dead: int
    risky: int
    active: int
    dead_percentage: float
    risky_percentage: float
    active_percentage: float
    last_analyzed_at: Optional[datetime] = None


class AnalysisSummary(BaseModel):
    dead: int
    risky: int
    active: int
    total: int
    last_analyzed_at: Optional[datetime] = None


class AnalysisResponse(BaseModel):
    project_id: str
    summary: AnalysisSummary
    endpoints: list[EndpointResponse]


class RunAnalysisResponse(BaseModel):
    success: bool
    message: str
    analyzed: int = 0
    code: str = ""


class UsageResponse(BaseModel):
    project_id: str
    plan: str
    event_count: int
    distinct_routes: int
    max_distinct_routes: Optional[int] = None
    retention_days: int
