"""Project (tenant) record: identity, hashed API key, plan and lifecycle flag."""

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from codepruner.common.models import Base, TimestampMixin, generate_uuid
from codepruner.plans.catalogue import DEFAULT_PLAN


class TenantModel(Base, TimestampMixin):
    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # sha256 of the raw "cp_..." key; the raw key is only shown at creation
    api_key_hash: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, index=True
    )
    plan: Mapped[str] = mapped_column(String(32), nullable=False, default=DEFAULT_PLAN)
    # Soft delete: inactive projects cannot ingest and are skipped by maintenance.
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
