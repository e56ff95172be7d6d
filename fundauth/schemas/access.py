"""Effective access and permission check schemas."""

from __future__ import annotations

from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class EffectiveRoleResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str]
    is_default: bool
    permissions: List[str]


class UserRolesResponse(BaseModel):
    user_id: str
    roles: List[EffectiveRoleResponse]
    permissions: List[str]


class PermissionSummary(BaseModel):
    id: UUID
    name: str
    description: Optional[str]
    resource: Optional[str]
    action: Optional[str]


class EffectivePermissionsResponse(BaseModel):
    user_id: str
    roles: List[str]
    permissions: List[PermissionSummary]
    permissions_by_resource: Dict[str, List[str]]


class PermissionCheckRequest(BaseModel):
    permission: str = Field(..., min_length=1, max_length=255)
    resource: Optional[str] = Field(default=None, max_length=120)


class PermissionCheckResponse(BaseModel):
    has_permission: bool
    permission: str
    resource: Optional[str]
    granted_by_roles: List[str]


class AccessCheckRequest(BaseModel):
    resource: str = Field(..., min_length=1, max_length=120)
    action: str = Field(..., min_length=1, max_length=120)


class AccessCheckResponse(BaseModel):
    has_access: bool
    roles: List[str]
    permissions: List[str]
