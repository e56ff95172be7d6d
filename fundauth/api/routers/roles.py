"""Role management endpoints."""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from fundauth.api.dependencies import Authorize, get_assignment_service, get_role_service
from fundauth.api.requirements import ADMIN_ONLY, ROLE_READ
from fundauth.api.routers.permissions import to_permission_response
from fundauth.models.role import Role
from fundauth.schemas.permission import PermissionResponse
from fundauth.schemas.role import RoleCreate, RoleResponse, RoleUpdate
from fundauth.services.access import Actor
from fundauth.services.assignments import AssignmentService
from fundauth.services.errors import RoleNotFoundError
from fundauth.services.roles import RoleService

router = APIRouter()


@router.post(
    "",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_role(
    payload: RoleCreate,
    service: RoleService = Depends(get_role_service),
    actor: Actor = Depends(Authorize(ADMIN_ONLY)),
) -> RoleResponse:
    role = service.create_role(payload, actor_id=actor.user_id)
    return to_role_response(role)


@router.get(
    "",
    response_model=List[RoleResponse],
    dependencies=[Depends(Authorize(ROLE_READ))],
)
def list_roles(
    include_inactive: bool = Query(default=False),
    service: RoleService = Depends(get_role_service),
) -> List[RoleResponse]:
    roles = service.list_roles(include_inactive=include_inactive)
    return [to_role_response(role) for role in roles]


@router.get(
    "/default",
    response_model=RoleResponse,
    dependencies=[Depends(Authorize(ROLE_READ))],
)
def get_default_role(service: RoleService = Depends(get_role_service)) -> RoleResponse:
    role = service.get_default_role()
    if role is None:
        raise RoleNotFoundError("No default role configured", reason="no default role")
    return to_role_response(role)


@router.get(
    "/by-name/{name}",
    response_model=RoleResponse,
    dependencies=[Depends(Authorize(ROLE_READ))],
)
def get_role_by_name(name: str, service: RoleService = Depends(get_role_service)) -> RoleResponse:
    return to_role_response(service.get_role_by_name(name))


@router.get(
    "/{role_id}",
    response_model=RoleResponse,
    dependencies=[Depends(Authorize(ROLE_READ))],
)
def get_role(role_id: UUID, service: RoleService = Depends(get_role_service)) -> RoleResponse:
    return to_role_response(service.get_role(role_id))


@router.patch(
    "/{role_id}",
    response_model=RoleResponse,
)
def update_role(
    role_id: UUID,
    payload: RoleUpdate,
    service: RoleService = Depends(get_role_service),
    actor: Actor = Depends(Authorize(ADMIN_ONLY)),
) -> RoleResponse:
    role = service.update_role(role_id, payload, actor_id=actor.user_id)
    return to_role_response(role)


@router.delete(
    "/{role_id}",
    response_model=RoleResponse,
)
def delete_role(
    role_id: UUID,
    service: RoleService = Depends(get_role_service),
    actor: Actor = Depends(Authorize(ADMIN_ONLY)),
) -> RoleResponse:
    role = service.delete_role(role_id, actor_id=actor.user_id)
    return to_role_response(role)


@router.get(
    "/{role_id}/users",
    response_model=List[str],
    dependencies=[Depends(Authorize(ROLE_READ))],
)
def list_role_users(
    role_id: UUID,
    service: AssignmentService = Depends(get_assignment_service),
) -> List[str]:
    return service.get_users_with_role(role_id)


@router.get(
    "/{role_id}/permissions",
    response_model=List[PermissionResponse],
    dependencies=[Depends(Authorize(ROLE_READ))],
)
def list_role_permissions(
    role_id: UUID,
    service: AssignmentService = Depends(get_assignment_service),
) -> List[PermissionResponse]:
    return [to_permission_response(permission) for permission in service.get_role_permissions(role_id)]


def to_role_response(role: Role) -> RoleResponse:
    return RoleResponse(
        id=role.id,
        name=role.name,
        description=role.description,
        is_active=role.is_active,
        is_default=role.is_default,
        user_count=role.active_user_count,
        permissions=role.active_permission_names,
        created_at=role.created_at,
        updated_at=role.updated_at,
    )
