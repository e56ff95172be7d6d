"""General audit trail for every authorization-model mutation."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from fundauth.models.base import Base, TimestampMixin
from fundauth.models.types import JSONType, PrincipalId, UUIDType


class AuditLog(TimestampMixin, Base):
    """Append-only audit entry; rows are never updated or deleted."""

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_actor", "actor_id"),
        Index("ix_audit_logs_action", "action"),
        Index("ix_audit_logs_target_user", "target_user_id"),
        Index("ix_audit_logs_occurred_at", "occurred_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    actor_id: Mapped[str | None] = mapped_column(PrincipalId, nullable=True)
    action: Mapped[str] = mapped_column(String(length=120), nullable=False)
    resource_type: Mapped[str] = mapped_column(String(length=64), nullable=False)
    resource_id: Mapped[str | None] = mapped_column(String(length=128), nullable=True)
    target_user_id: Mapped[str | None] = mapped_column(PrincipalId, nullable=True)
    details: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
