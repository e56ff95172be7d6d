"""Append-only log of permission grants and revocations on roles."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import DateTime
from sqlalchemy import Enum as SqlEnum
from sqlalchemy import ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from fundauth.models.base import Base, TimestampMixin
from fundauth.models.types import PrincipalId, UUIDType


class PermissionAuditAction(str, Enum):
    GRANT = "grant"
    REVOKE = "revoke"


class PermissionAssignmentAudit(TimestampMixin, Base):
    """Immutable record of one role-permission link change."""

    __tablename__ = "permission_assignment_audits"
    __table_args__ = (
        Index("ix_permission_audits_role", "role_id"),
        Index("ix_permission_audits_permission", "permission_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    action: Mapped[PermissionAuditAction] = mapped_column(
        SqlEnum(
            PermissionAuditAction,
            name="permission_audit_action",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    actor_id: Mapped[str] = mapped_column(PrincipalId, nullable=False)
    role_id: Mapped[uuid.UUID] = mapped_column(UUIDType, ForeignKey("roles.id", ondelete="RESTRICT"), nullable=False)
    permission_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("permissions.id", ondelete="RESTRICT"),
        nullable=False,
    )
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
