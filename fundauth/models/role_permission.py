"""Current-state link between a role and a permission."""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fundauth.models.base import ActiveFlagMixin, Base, TimestampMixin
from fundauth.models.types import UUIDType


class RolePermission(ActiveFlagMixin, TimestampMixin, Base):
    """Join row for the many-to-many relation, reactivated rather than duplicated."""

    __tablename__ = "role_permissions"
    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permissions_role_permission"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    role_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("roles.id", ondelete="RESTRICT"),
        nullable=False,
    )
    permission_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("permissions.id", ondelete="RESTRICT"),
        nullable=False,
    )

    role: Mapped["Role"] = relationship("Role", back_populates="permission_links")
    permission: Mapped["Permission"] = relationship(
        "Permission",
        back_populates="role_links",
    )
