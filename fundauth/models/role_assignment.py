"""Append-mostly history of role grants and revocations."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fundauth.models.base import ActiveFlagMixin, Base, TimestampMixin
from fundauth.models.types import PrincipalId, UUIDType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RoleAssignment(ActiveFlagMixin, TimestampMixin, Base):
    """One record per assignment event.

    The current truth lives in ``user_roles``; these rows are the audit
    history. A revoke stamps the revocation columns on the newest active
    record instead of deleting it.
    """

    __tablename__ = "role_assignments"
    __table_args__ = (
        Index("ix_role_assignments_user_role", "user_id", "role_id"),
        Index("ix_role_assignments_assigned_at", "assigned_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(PrincipalId, nullable=False)
    role_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("roles.id", ondelete="RESTRICT"),
        nullable=False,
    )
    assigned_by: Mapped[str] = mapped_column(PrincipalId, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(String(length=512), nullable=True)
    assigned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_by: Mapped[Optional[str]] = mapped_column(PrincipalId, nullable=True)
    revoke_reason: Mapped[Optional[str]] = mapped_column(String(length=512), nullable=True)

    role: Mapped["Role"] = relationship("Role")
