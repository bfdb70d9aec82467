"""Shared Pydantic schemas for CodePruner."""

from typing import Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    service: str = "codepruner"
    version: str
    database: bool
    maintenance_scheduled: bool = False
    writer_pending: int = 0


class ErrorResponse(BaseModel):
    error: str
    code: str


class ValidationErrorResponse(ErrorResponse):
    """Batch rejection naming the first offending item and field."""
    index: Optional[int] = None
    field: Optional[str] = None
