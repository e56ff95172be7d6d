"""Permission management endpoints."""

from __future__ import annotations

from typing import Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from fundauth.api.dependencies import Authorize, get_permission_service
from fundauth.api.requirements import ADMIN_ONLY, PERMISSION_READ
from fundauth.models.permission import Permission
from fundauth.schemas.permission import PermissionCreate, PermissionResponse, PermissionUpdate
from fundauth.services.access import Actor
from fundauth.services.permissions import PermissionService

router = APIRouter()


@router.post(
    "",
    response_model=PermissionResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_permission(
    payload: PermissionCreate,
    service: PermissionService = Depends(get_permission_service),
    actor: Actor = Depends(Authorize(ADMIN_ONLY)),
) -> PermissionResponse:
    permission = service.create_permission(payload, actor_id=actor.user_id)
    return to_permission_response(permission)


@router.get(
    "",
    response_model=List[PermissionResponse],
    dependencies=[Depends(Authorize(PERMISSION_READ))],
)
def list_permissions(
    include_inactive: bool = Query(default=False),
    service: PermissionService = Depends(get_permission_service),
) -> List[PermissionResponse]:
    permissions = service.list_permissions(include_inactive=include_inactive)
    return [to_permission_response(permission) for permission in permissions]


@router.get(
    "/by-resource",
    response_model=Dict[str, List[PermissionResponse]],
    dependencies=[Depends(Authorize(PERMISSION_READ))],
)
def list_permissions_by_resource(
    service: PermissionService = Depends(get_permission_service),
) -> Dict[str, List[PermissionResponse]]:
    grouped = service.list_by_resource()
    return {
        resource: [to_permission_response(permission) for permission in permissions]
        for resource, permissions in grouped.items()
    }


@router.get(
    "/resource/{resource}",
    response_model=List[PermissionResponse],
    dependencies=[Depends(Authorize(PERMISSION_READ))],
)
def list_permissions_for_resource(
    resource: str,
    service: PermissionService = Depends(get_permission_service),
) -> List[PermissionResponse]:
    return [to_permission_response(permission) for permission in service.list_for_resource(resource)]


@router.get(
    "/by-name/{name}",
    response_model=PermissionResponse,
    dependencies=[Depends(Authorize(PERMISSION_READ))],
)
def get_permission_by_name(
    name: str,
    service: PermissionService = Depends(get_permission_service),
) -> PermissionResponse:
    return to_permission_response(service.get_permission_by_name(name))


@router.get(
    "/{permission_id}",
    response_model=PermissionResponse,
    dependencies=[Depends(Authorize(PERMISSION_READ))],
)
def get_permission(
    permission_id: UUID,
    service: PermissionService = Depends(get_permission_service),
) -> PermissionResponse:
    return to_permission_response(service.get_permission(permission_id))


@router.patch(
    "/{permission_id}",
    response_model=PermissionResponse,
)
def update_permission(
    permission_id: UUID,
    payload: PermissionUpdate,
    service: PermissionService = Depends(get_permission_service),
    actor: Actor = Depends(Authorize(ADMIN_ONLY)),
) -> PermissionResponse:
    permission = service.update_permission(permission_id, payload, actor_id=actor.user_id)
    return to_permission_response(permission)


@router.delete(
    "/{permission_id}",
    response_model=PermissionResponse,
)
def delete_permission(
    permission_id: UUID,
    service: PermissionService = Depends(get_permission_service),
    actor: Actor = Depends(Authorize(ADMIN_ONLY)),
) -> PermissionResponse:
    permission = service.delete_permission(permission_id, actor_id=actor.user_id)
    return to_permission_response(permission)


def to_permission_response(permission: Permission) -> PermissionResponse:
    return PermissionResponse(
        id=permission.id,
        name=permission.name,
        description=permission.description,
        resource=permission.resource,
        action=permission.action,
        is_active=permission.is_active,
        role_count=permission.active_role_count,
        created_at=permission.created_at,
        updated_at=permission.updated_at,
    )
