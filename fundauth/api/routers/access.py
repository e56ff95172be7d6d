"""Effective access queries and yes/no checks."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from fundauth.api.dependencies import Authorize, get_effective_access_service
from fundauth.api.requirements import AUTHENTICATED, USER_READ
from fundauth.schemas.access import (
    AccessCheckRequest,
    AccessCheckResponse,
    EffectivePermissionsResponse,
    EffectiveRoleResponse,
    PermissionCheckRequest,
    PermissionCheckResponse,
    PermissionSummary,
    UserRolesResponse,
)
from fundauth.services.access import Actor
from fundauth.services.effective import EffectiveAccessService

router = APIRouter()


@router.get("/me/roles", response_model=UserRolesResponse)
def my_roles(
    service: EffectiveAccessService = Depends(get_effective_access_service),
    actor: Actor = Depends(Authorize(AUTHENTICATED)),
) -> UserRolesResponse:
    return _user_roles(service, actor.user_id)


@router.get("/me/permissions", response_model=EffectivePermissionsResponse)
def my_permissions(
    service: EffectiveAccessService = Depends(get_effective_access_service),
    actor: Actor = Depends(Authorize(AUTHENTICATED)),
) -> EffectivePermissionsResponse:
    return _effective_permissions(service, actor.user_id)


@router.post("/me/check-permission", response_model=PermissionCheckResponse)
def my_permission_check(
    payload: PermissionCheckRequest,
    service: EffectiveAccessService = Depends(get_effective_access_service),
    actor: Actor = Depends(Authorize(AUTHENTICATED)),
) -> PermissionCheckResponse:
    return _permission_check(service, actor.user_id, payload)


@router.post("/me/check-access", response_model=AccessCheckResponse)
def my_access_check(
    payload: AccessCheckRequest,
    service: EffectiveAccessService = Depends(get_effective_access_service),
    actor: Actor = Depends(Authorize(AUTHENTICATED)),
) -> AccessCheckResponse:
    return _access_check(service, actor.user_id, payload)


@router.get(
    "/users/{user_id}/roles",
    response_model=UserRolesResponse,
    dependencies=[Depends(Authorize(USER_READ))],
)
def user_roles(
    user_id: str,
    service: EffectiveAccessService = Depends(get_effective_access_service),
) -> UserRolesResponse:
    return _user_roles(service, user_id)


@router.get(
    "/users/{user_id}/permissions",
    response_model=EffectivePermissionsResponse,
    dependencies=[Depends(Authorize(USER_READ))],
)
def user_permissions(
    user_id: str,
    service: EffectiveAccessService = Depends(get_effective_access_service),
) -> EffectivePermissionsResponse:
    return _effective_permissions(service, user_id)


@router.post(
    "/users/{user_id}/check-permission",
    response_model=PermissionCheckResponse,
    dependencies=[Depends(Authorize(USER_READ))],
)
def user_permission_check(
    user_id: str,
    payload: PermissionCheckRequest,
    service: EffectiveAccessService = Depends(get_effective_access_service),
) -> PermissionCheckResponse:
    return _permission_check(service, user_id, payload)


@router.post(
    "/users/{user_id}/check-access",
    response_model=AccessCheckResponse,
    dependencies=[Depends(Authorize(USER_READ))],
)
def user_access_check(
    user_id: str,
    payload: AccessCheckRequest,
    service: EffectiveAccessService = Depends(get_effective_access_service),
) -> AccessCheckResponse:
    return _access_check(service, user_id, payload)


def _user_roles(service: EffectiveAccessService, user_id: str) -> UserRolesResponse:
    roles = service.get_user_roles(user_id)
    permission_names = sorted({name for role in roles for name in role.permissions})
    return UserRolesResponse(
        user_id=user_id,
        roles=[
            EffectiveRoleResponse(
                id=role.id,
                name=role.name,
                description=role.description,
                is_default=role.is_default,
                permissions=role.permissions,
            )
            for role in roles
        ],
        permissions=permission_names,
    )


def _effective_permissions(service: EffectiveAccessService, user_id: str) -> EffectivePermissionsResponse:
    effective = service.get_effective_permissions(user_id)
    return EffectivePermissionsResponse(
        user_id=user_id,
        roles=effective.roles,
        permissions=[
            PermissionSummary(
                id=permission.id,
                name=permission.name,
                description=permission.description,
                resource=permission.resource,
                action=permission.action,
            )
            for permission in effective.permissions
        ],
        permissions_by_resource=effective.permissions_by_resource,
    )


def _permission_check(
    service: EffectiveAccessService,
    user_id: str,
    payload: PermissionCheckRequest,
) -> PermissionCheckResponse:
    check = service.check_permission(user_id, payload.permission, payload.resource)
    return PermissionCheckResponse(
        has_permission=check.has_permission,
        permission=payload.permission,
        resource=payload.resource,
        granted_by_roles=check.granted_by_roles,
    )


def _access_check(
    service: EffectiveAccessService,
    user_id: str,
    payload: AccessCheckRequest,
) -> AccessCheckResponse:
    check = service.check_access(user_id, payload.resource, payload.action)
    return AccessCheckResponse(has_access=check.has_access, roles=check.roles, permissions=check.permissions)
