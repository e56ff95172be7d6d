"""Permission schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PermissionBase(BaseModel):
    name: str = Field(..., min_length=3, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1024)
    resource: Optional[str] = Field(default=None, max_length=120)
    action: Optional[str] = Field(default=None, max_length=120)


class PermissionCreate(PermissionBase):
    is_active: bool = True


class PermissionUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1024)
    resource: Optional[str] = Field(default=None, max_length=120)
    action: Optional[str] = Field(default=None, max_length=120)
    is_active: Optional[bool] = None


class PermissionResponse(PermissionBase):
    id: UUID
    is_active: bool
    role_count: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
