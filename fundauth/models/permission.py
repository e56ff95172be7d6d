"""Permission model representing atomic grants."""

from __future__ import annotations

import uuid
from typing import List

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fundauth.models.base import ActiveFlagMixin, Base, TimestampMixin
from fundauth.models.types import UUIDType


class Permission(ActiveFlagMixin, TimestampMixin, Base):
    """Atomic grant identified by name, optionally tagged with resource/action.

    Names conventionally read ``RESOURCE:ACTION`` but are never parsed; the
    separate ``resource``/``action`` columns drive grouping and access checks.
    """

    __tablename__ = "permissions"
    __table_args__ = (
        UniqueConstraint("name", name="uq_permissions_name"),
        Index("ix_permissions_resource_action", "resource", "action"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(length=1024), nullable=True)
    resource: Mapped[str | None] = mapped_column(String(length=120), nullable=True)
    action: Mapped[str | None] = mapped_column(String(length=120), nullable=True)

    role_links: Mapped[List["RolePermission"]] = relationship(
        "RolePermission",
        back_populates="permission",
    )

    @property
    def active_role_count(self) -> int:
        return sum(1 for link in self.role_links if link.is_active)
