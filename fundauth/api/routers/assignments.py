"""Role and permission assignment endpoints."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status

from fundauth.api.dependencies import Authorize, get_assignment_service, get_effective_access_service
from fundauth.api.requirements import ADMIN_ONLY, AUDIT_READ, AUTHENTICATED, MANAGE_USER_ROLES, USER_READ
from fundauth.models.role_assignment import RoleAssignment
from fundauth.schemas.assignment import (
    BulkPermissionAssignmentCreate,
    BulkPermissionAssignmentResponse,
    BulkRoleAssignmentCreate,
    BulkRoleAssignmentResponse,
    InitializeUserResponse,
    PermissionAuditResponse,
    PermissionBulkFailure,
    RevokeAllRoles,
    RevokeAllRolesResponse,
    RoleAssignmentCreate,
    RoleAssignmentRecordResponse,
    RoleBulkFailure,
    RolePermissionChange,
    RolePermissionResponse,
    RoleRevoke,
    UserRoleResponse,
)
from fundauth.services.access import Actor
from fundauth.services.assignments import AssignmentService
from fundauth.services.effective import EffectiveAccessService

router = APIRouter()


@router.post(
    "/roles",
    response_model=UserRoleResponse,
    status_code=status.HTTP_201_CREATED,
)
def assign_role(
    payload: RoleAssignmentCreate,
    service: AssignmentService = Depends(get_assignment_service),
    actor: Actor = Depends(Authorize(MANAGE_USER_ROLES)),
) -> UserRoleResponse:
    link = service.assign_role(
        payload.user_id,
        payload.role_id,
        assigned_by=actor.user_id,
        reason=payload.reason,
        expires_at=payload.expires_at,
    )
    return UserRoleResponse.model_validate(link)


@router.post(
    "/roles/revoke",
    response_model=UserRoleResponse,
)
def revoke_role(
    payload: RoleRevoke,
    service: AssignmentService = Depends(get_assignment_service),
    actor: Actor = Depends(Authorize(MANAGE_USER_ROLES)),
) -> UserRoleResponse:
    link = service.revoke_role(payload.user_id, payload.role_id, revoked_by=actor.user_id, reason=payload.reason)
    return UserRoleResponse.model_validate(link)


@router.post(
    "/roles/bulk",
    response_model=BulkRoleAssignmentResponse,
)
def bulk_assign_roles(
    payload: BulkRoleAssignmentCreate,
    service: AssignmentService = Depends(get_assignment_service),
    actor: Actor = Depends(Authorize(MANAGE_USER_ROLES)),
) -> BulkRoleAssignmentResponse:
    result = service.bulk_assign_roles(
        payload.user_ids,
        payload.role_id,
        assigned_by=actor.user_id,
        reason=payload.reason,
        expires_at=payload.expires_at,
    )
    return BulkRoleAssignmentResponse(
        success_count=result.success_count,
        failures=[RoleBulkFailure(user_id=failure.item_id, error=failure.error) for failure in result.failures],
        outcome=result.outcome,
    )


@router.post(
    "/users/{user_id}/roles/revoke-all",
    response_model=RevokeAllRolesResponse,
)
def revoke_all_roles(
    user_id: str,
    payload: Optional[RevokeAllRoles] = Body(default=None),
    service: AssignmentService = Depends(get_assignment_service),
    actor: Actor = Depends(Authorize(MANAGE_USER_ROLES)),
) -> RevokeAllRolesResponse:
    reason = payload.reason if payload else RevokeAllRoles().reason
    revoked = service.revoke_all_roles(user_id, revoked_by=actor.user_id, reason=reason)
    return RevokeAllRolesResponse(user_id=user_id, revoked_roles=revoked)


@router.post(
    "/users/me/initialize",
    response_model=InitializeUserResponse,
)
def initialize_me(
    service: AssignmentService = Depends(get_assignment_service),
    effective: EffectiveAccessService = Depends(get_effective_access_service),
    actor: Actor = Depends(Authorize(AUTHENTICATED)),
) -> InitializeUserResponse:
    assigned = service.initialize_user(actor.user_id)
    roles = [role.name for role in effective.get_user_roles(actor.user_id)]
    return InitializeUserResponse(user_id=actor.user_id, assigned=assigned, roles=roles)


@router.post(
    "/users/{user_id}/fund-manager",
    response_model=UserRoleResponse,
    status_code=status.HTTP_201_CREATED,
)
def promote_to_fund_manager(
    user_id: str,
    service: AssignmentService = Depends(get_assignment_service),
    actor: Actor = Depends(Authorize(MANAGE_USER_ROLES)),
) -> UserRoleResponse:
    return UserRoleResponse.model_validate(service.promote_to_fund_manager(user_id, assigned_by=actor.user_id))


@router.post(
    "/users/{user_id}/compliance-officer",
    response_model=UserRoleResponse,
    status_code=status.HTTP_201_CREATED,
)
def assign_compliance_officer(
    user_id: str,
    service: AssignmentService = Depends(get_assignment_service),
    actor: Actor = Depends(Authorize(MANAGE_USER_ROLES)),
) -> UserRoleResponse:
    return UserRoleResponse.model_validate(service.assign_compliance_officer(user_id, assigned_by=actor.user_id))


@router.post(
    "/users/{user_id}/initialize",
    response_model=InitializeUserResponse,
)
def initialize_user(
    user_id: str,
    service: AssignmentService = Depends(get_assignment_service),
    effective: EffectiveAccessService = Depends(get_effective_access_service),
    actor: Actor = Depends(Authorize(MANAGE_USER_ROLES)),
) -> InitializeUserResponse:
    assigned = service.initialize_user(user_id, assigned_by=actor.user_id)
    roles = [role.name for role in effective.get_user_roles(user_id)]
    return InitializeUserResponse(user_id=user_id, assigned=assigned, roles=roles)


@router.get(
    "/users/{user_id}/history",
    response_model=List[RoleAssignmentRecordResponse],
    dependencies=[Depends(Authorize(USER_READ))],
)
def role_assignment_history(
    user_id: str,
    service: AssignmentService = Depends(get_assignment_service),
) -> List[RoleAssignmentRecordResponse]:
    return [_to_record_response(record) for record in service.get_role_assignment_history(user_id)]


@router.post(
    "/permissions",
    response_model=RolePermissionResponse,
    status_code=status.HTTP_201_CREATED,
)
def assign_permission(
    payload: RolePermissionChange,
    service: AssignmentService = Depends(get_assignment_service),
    actor: Actor = Depends(Authorize(ADMIN_ONLY)),
) -> RolePermissionResponse:
    link = service.assign_permission_to_role(payload.role_id, payload.permission_id, actor_id=actor.user_id)
    return RolePermissionResponse.model_validate(link)


@router.post(
    "/permissions/revoke",
    response_model=RolePermissionResponse,
)
def revoke_permission(
    payload: RolePermissionChange,
    service: AssignmentService = Depends(get_assignment_service),
    actor: Actor = Depends(Authorize(ADMIN_ONLY)),
) -> RolePermissionResponse:
    link = service.revoke_permission_from_role(payload.role_id, payload.permission_id, actor_id=actor.user_id)
    return RolePermissionResponse.model_validate(link)


@router.post(
    "/permissions/bulk",
    response_model=BulkPermissionAssignmentResponse,
)
def bulk_assign_permissions(
    payload: BulkPermissionAssignmentCreate,
    service: AssignmentService = Depends(get_assignment_service),
    actor: Actor = Depends(Authorize(ADMIN_ONLY)),
) -> BulkPermissionAssignmentResponse:
    result = service.bulk_assign_permissions(payload.role_id, payload.permission_ids, actor_id=actor.user_id)
    return BulkPermissionAssignmentResponse(
        success_count=result.success_count,
        failures=[
            PermissionBulkFailure(permission_id=failure.item_id, error=failure.error)
            for failure in result.failures
        ],
        outcome=result.outcome,
    )


@router.get(
    "/permissions/audit",
    response_model=List[PermissionAuditResponse],
    dependencies=[Depends(Authorize(AUDIT_READ))],
)
def permission_audit_trail(
    role_id: Optional[UUID] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    service: AssignmentService = Depends(get_assignment_service),
) -> List[PermissionAuditResponse]:
    entries = service.get_permission_audit_trail(role_id=role_id, limit=limit)
    return [
        PermissionAuditResponse(
            id=entry.id,
            action=entry.action.value,
            actor_id=entry.actor_id,
            role_id=entry.role_id,
            permission_id=entry.permission_id,
            occurred_at=entry.occurred_at,
        )
        for entry in entries
    ]


def _to_record_response(record: RoleAssignment) -> RoleAssignmentRecordResponse:
    return RoleAssignmentRecordResponse(
        id=record.id,
        user_id=record.user_id,
        role_id=record.role_id,
        role_name=record.role.name,
        assigned_by=record.assigned_by,
        reason=record.reason,
        assigned_at=record.assigned_at,
        expires_at=record.expires_at,
        revoked_at=record.revoked_at,
        revoked_by=record.revoked_by,
        revoke_reason=record.revoke_reason,
        is_active=record.is_active,
    )
