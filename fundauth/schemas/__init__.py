"""Pydantic schemas for API payloads."""

from fundauth.schemas.access import (
    AccessCheckRequest,
    AccessCheckResponse,
    EffectivePermissionsResponse,
    PermissionCheckRequest,
    PermissionCheckResponse,
    UserRolesResponse,
)
from fundauth.schemas.assignment import (
    BulkPermissionAssignmentCreate,
    BulkRoleAssignmentCreate,
    RoleAssignmentCreate,
    RolePermissionChange,
    RoleRevoke,
)
from fundauth.schemas.permission import PermissionCreate, PermissionResponse, PermissionUpdate
from fundauth.schemas.role import RoleCreate, RoleResponse, RoleUpdate

__all__ = [
    "AccessCheckRequest",
    "AccessCheckResponse",
    "BulkPermissionAssignmentCreate",
    "BulkRoleAssignmentCreate",
    "EffectivePermissionsResponse",
    "PermissionCheckRequest",
    "PermissionCheckResponse",
    "PermissionCreate",
    "PermissionResponse",
    "PermissionUpdate",
    "RoleAssignmentCreate",
    "RoleCreate",
    "RolePermissionChange",
    "RoleResponse",
    "RoleRevoke",
    "RoleUpdate",
    "UserRolesResponse",
]
