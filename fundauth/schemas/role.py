"""Role schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RoleBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=120)
    description: Optional[str] = Field(default=None, max_length=512)


class RoleCreate(RoleBase):
    is_active: bool = True
    is_default: bool = False


class RoleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=120)
    description: Optional[str] = Field(default=None, max_length=512)
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None


class RoleResponse(RoleBase):
    id: UUID
    is_active: bool
    is_default: bool
    user_count: int
    permissions: List[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
