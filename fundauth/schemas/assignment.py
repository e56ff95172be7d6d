"""Assignment schemas for user-role and role-permission links."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RoleAssignmentCreate(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=128)
    role_id: UUID
    reason: Optional[str] = Field(default=None, max_length=512)
    expires_at: Optional[datetime] = None


class RoleRevoke(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=128)
    role_id: UUID
    reason: Optional[str] = Field(default=None, max_length=512)


class RevokeAllRoles(BaseModel):
    reason: str = Field(default="Role cleanup", max_length=512)


class BulkRoleAssignmentCreate(BaseModel):
    user_ids: List[str] = Field(..., min_length=1)
    role_id: UUID
    reason: Optional[str] = Field(default=None, max_length=512)
    expires_at: Optional[datetime] = None


class RolePermissionChange(BaseModel):
    role_id: UUID
    permission_id: UUID


class BulkPermissionAssignmentCreate(BaseModel):
    role_id: UUID
    permission_ids: List[UUID] = Field(..., min_length=1)


class UserRoleResponse(BaseModel):
    id: UUID
    user_id: str
    role_id: UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RolePermissionResponse(BaseModel):
    id: UUID
    role_id: UUID
    permission_id: UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoleAssignmentRecordResponse(BaseModel):
    id: UUID
    user_id: str
    role_id: UUID
    role_name: str
    assigned_by: str
    reason: Optional[str]
    assigned_at: datetime
    expires_at: Optional[datetime]
    revoked_at: Optional[datetime]
    revoked_by: Optional[str]
    revoke_reason: Optional[str]
    is_active: bool


class PermissionAuditResponse(BaseModel):
    id: UUID
    action: str
    actor_id: str
    role_id: UUID
    permission_id: UUID
    occurred_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoleBulkFailure(BaseModel):
    user_id: str
    error: str


class PermissionBulkFailure(BaseModel):
    permission_id: str
    error: str


BulkOutcome = Literal["succeeded", "failed", "partial", "empty"]


class BulkRoleAssignmentResponse(BaseModel):
    success_count: int
    failures: List[RoleBulkFailure]
    outcome: BulkOutcome


class BulkPermissionAssignmentResponse(BaseModel):
    success_count: int
    failures: List[PermissionBulkFailure]
    outcome: BulkOutcome


class RevokeAllRolesResponse(BaseModel):
    user_id: str
    revoked_roles: List[str]


class InitializeUserResponse(BaseModel):
    user_id: str
    assigned: bool
    roles: List[str]
