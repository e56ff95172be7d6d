"""Current-state link between a user and a role."""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fundauth.models.base import ActiveFlagMixin, Base, TimestampMixin
from fundauth.models.types import PrincipalId, UUIDType


class UserRole(ActiveFlagMixin, TimestampMixin, Base):
    """One row per (user, role) pair; revocation flips ``is_active``."""

    __tablename__ = "user_roles"
    __table_args__ = (
        UniqueConstraint("user_id", "role_id", name="uq_user_roles_user_role"),
        Index("ix_user_roles_user", "user_id"),
        Index("ix_user_roles_role", "role_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(PrincipalId, nullable=False)
    role_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("roles.id", ondelete="RESTRICT"),
        nullable=False,
    )

    role: Mapped["Role"] = relationship("Role", back_populates="user_links")
