"""Declarative base and mixins."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base class for all ORM models."""


class TimestampMixin:
    """Adds created_at/updated_at columns."""

    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ActiveFlagMixin:
    """Soft-delete / deactivation flag shared by catalog rows and links."""

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
