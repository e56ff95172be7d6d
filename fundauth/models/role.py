"""Role model for grouping permissions."""

from __future__ import annotations

import uuid
from typing import List

from sqlalchemy import Boolean, Index, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fundauth.models.base import ActiveFlagMixin, Base, TimestampMixin
from fundauth.models.types import UUIDType


class Role(ActiveFlagMixin, TimestampMixin, Base):
    """Named bundle of permissions assignable to users."""

    __tablename__ = "roles"
    __table_args__ = (
        UniqueConstraint("name", name="uq_roles_name"),
        # At most one default role, enforced by the store as well as the service.
        Index(
            "uq_roles_single_default",
            "is_default",
            unique=True,
            sqlite_where=text("is_default = 1"),
            postgresql_where=text("is_default"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(length=120), nullable=False)
    description: Mapped[str | None] = mapped_column(String(length=512), nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    user_links: Mapped[List["UserRole"]] = relationship(
        "UserRole",
        back_populates="role",
    )
    permission_links: Mapped[List["RolePermission"]] = relationship(
        "RolePermission",
        back_populates="role",
    )

    @property
    def active_permission_names(self) -> List[str]:
        return sorted(
            link.permission.name
            for link in self.permission_links
            if link.is_active and link.permission.is_active
        )

    @property
    def active_user_count(self) -> int:
        return sum(1 for link in self.user_links if link.is_active)
