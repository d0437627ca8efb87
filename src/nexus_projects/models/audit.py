"""Audit log model for privileged admin actions."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Column, Index
from sqlmodel import Field, SQLModel

from src.nexus_projects.models.base import json_type, utc_now


class AuditAction(str, Enum):
    """Audit action types for type-safe logging."""

    # Single-project moderation
    MODERATE_PROJECT_APPROVE = "MODERATE_PROJECT_APPROVE"
    MODERATE_PROJECT_REJECT = "MODERATE_PROJECT_REJECT"
    MODERATE_PROJECT_ARCHIVE = "MODERATE_PROJECT_ARCHIVE"
    MODERATE_PROJECT_REOPEN = "MODERATE_PROJECT_REOPEN"

    # Bulk moderation, one entry per affected project
    BULK_MODERATE_PROJECT_APPROVE = "BULK_MODERATE_PROJECT_APPROVE"
    BULK_MODERATE_PROJECT_REJECT = "BULK_MODERATE_PROJECT_REJECT"
    BULK_MODERATE_PROJECT_ARCHIVE = "BULK_MODERATE_PROJECT_ARCHIVE"
    BULK_MODERATE_PROJECT_REOPEN = "BULK_MODERATE_PROJECT_REOPEN"

    # Application override
    UPDATE_APPLICATION_STATUS = "UPDATE_APPLICATION_STATUS"

    @classmethod
    def for_moderation(cls, action: str, bulk: bool = False) -> "AuditAction":
        prefix = "BULK_MODERATE_PROJECT_" if bulk else "MODERATE_PROJECT_"
        return cls(f"{prefix}{action}")


class AuditLog(SQLModel, table=True):
    """Append-only record of an admin action.

    Rows are only ever inserted; nothing in the service updates or deletes them.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_tenant_created", "tenant_id", "created_at"),
        Index("ix_audit_logs_actor_created", "actor_id", "created_at"),
        Index("ix_audit_logs_action_created", "action", "created_at"),
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    # Context
    tenant_id: str | None = Field(default=None, max_length=100)
    actor_id: str = Field(max_length=100)
    actor_name: str | None = Field(default=None, max_length=200)

    # Action details
    action: str = Field(max_length=50)  # AuditAction value
    entity_type: str = Field(max_length=50)  # "project", "application"
    entity_id: UUID | None = Field(default=None)

    # {"old": {...}, "new": {...}}
    changes: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(json_type(), nullable=True),
    )
    reason: str | None = Field(default=None, max_length=1000)

    # Request metadata
    ip_address: str | None = Field(max_length=45, default=None)  # IPv4/IPv6
    user_agent: str | None = Field(max_length=500, default=None)
    request_id: str | None = Field(max_length=64, default=None)

    created_at: datetime = Field(default_factory=utc_now)
