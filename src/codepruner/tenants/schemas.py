"""Pydantic schemas for project administration."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from codepruner.common.timeutil import ensure_utc

PLAN_PATTERN = r"^(free|pro)$"
SLUG_PATTERN = r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$"


class TenantCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=255)
    slug: str = Field(..., min_length=1, max_length=100, pattern=SLUG_PATTERN)
    description: str = Field(default="", max_length=2000)
    plan: str = Field(default="free", pattern=PLAN_PATTERN)


class TenantResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: str
    plan: str
    active: bool
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class TenantCreateResponse(TenantResponse):
    """Carries the raw API key, returned once."""
    api_key: str


class ApiKeyResponse(BaseModel):
    id: str
    api_key: str


class TenantUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    plan: Optional[str] = Field(default=None, pattern=PLAN_PATTERN)
    active: Optional[bool] = None
