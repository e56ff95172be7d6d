"""Effective access resolution: what a user can do right now."""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fundauth.models.permission import Permission
from fundauth.models.role import Role
from fundauth.models.role_permission import RolePermission
from fundauth.models.user_role import UserRole


@dataclass(frozen=True)
class ActorSnapshot:
    """Active role and permission names of one user, fetched together."""

    user_id: str
    roles: FrozenSet[str] = frozenset()
    permissions: FrozenSet[str] = frozenset()


@dataclass
class EffectiveRole:
    id: UUID
    name: str
    description: Optional[str]
    is_default: bool
    permissions: List[str]


@dataclass
class EffectivePermissions:
    user_id: str
    roles: List[str]
    permissions: List[Permission]
    permissions_by_resource: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class PermissionCheck:
    has_permission: bool
    granted_by_roles: List[str]


@dataclass
class AccessCheck:
    has_access: bool
    roles: List[str]
    permissions: List[str]


class EffectiveAccessService:
    """Reads the current link state; inactive roles, links and permissions never count."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._logger = logging.getLogger("fundauth.services.effective")

    def get_user_roles(self, user_id: str) -> List[EffectiveRole]:
        stmt = (
            select(Role, Permission.name)
            .join(UserRole, UserRole.role_id == Role.id)
            .outerjoin(
                RolePermission,
                and_(RolePermission.role_id == Role.id, RolePermission.is_active.is_(True)),
            )
            .outerjoin(
                Permission,
                and_(Permission.id == RolePermission.permission_id, Permission.is_active.is_(True)),
            )
            .where(
                UserRole.user_id == user_id,
                UserRole.is_active.is_(True),
                Role.is_active.is_(True),
            )
            .order_by(Role.name, Permission.name)
        )

        roles: Dict[UUID, EffectiveRole] = OrderedDict()
        for role, permission_name in self._session.execute(stmt):
            entry = roles.get(role.id)
            if entry is None:
                entry = EffectiveRole(
                    id=role.id,
                    name=role.name,
                    description=role.description,
                    is_default=role.is_default,
                    permissions=[],
                )
                roles[role.id] = entry
            if permission_name is not None:
                entry.permissions.append(permission_name)
        return list(roles.values())

    def get_effective_permissions(self, user_id: str) -> EffectivePermissions:
        """Union of permissions across active roles, de-duplicated by permission id."""

        stmt = (
            select(Permission, Role.name)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .join(Role, Role.id == RolePermission.role_id)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(
                UserRole.user_id == user_id,
                UserRole.is_active.is_(True),
                Role.is_active.is_(True),
                RolePermission.is_active.is_(True),
                Permission.is_active.is_(True),
            )
        )

        permissions: Dict[UUID, Permission] = {}
        role_names = set()
        for permission, role_name in self._session.execute(stmt):
            permissions.setdefault(permission.id, permission)
            role_names.add(role_name)

        # Roles without any active permission still count as held roles.
        role_names.update(role.name for role in self.get_user_roles(user_id))

        ordered = sorted(permissions.values(), key=lambda item: (item.resource or "", item.name))
        by_resource: Dict[str, List[str]] = OrderedDict()
        for permission in ordered:
            if permission.resource and permission.action:
                by_resource.setdefault(permission.resource, []).append(permission.action)

        return EffectivePermissions(
            user_id=user_id,
            roles=sorted(role_names),
            permissions=ordered,
            permissions_by_resource=by_resource,
        )

    def check_permission(
        self,
        user_id: str,
        permission_name: str,
        resource: Optional[str] = None,
    ) -> PermissionCheck:
        stmt = (
            select(Role.name)
            .join(UserRole, UserRole.role_id == Role.id)
            .join(RolePermission, RolePermission.role_id == Role.id)
            .join(Permission, Permission.id == RolePermission.permission_id)
            .where(
                UserRole.user_id == user_id,
                UserRole.is_active.is_(True),
                Role.is_active.is_(True),
                RolePermission.is_active.is_(True),
                Permission.is_active.is_(True),
                Permission.name == permission_name,
            )
            .distinct()
            .order_by(Role.name)
        )
        if resource is not None:
            stmt = stmt.where(Permission.resource == resource)

        granted_by = list(self._session.scalars(stmt))
        return PermissionCheck(has_permission=bool(granted_by), granted_by_roles=granted_by)

    def user_has_any_permission(
        self,
        user_id: str,
        permission_names: Iterable[str],
        resource: Optional[str] = None,
    ) -> bool:
        names = set(permission_names)
        return bool(names) and bool(self._held_permission_names(user_id, names, resource))

    def user_has_all_permissions(
        self,
        user_id: str,
        permission_names: Iterable[str],
        resource: Optional[str] = None,
    ) -> bool:
        names = set(permission_names)
        return bool(names) and self._held_permission_names(user_id, names, resource) == names

    def get_access_snapshot(self, user_id: str) -> ActorSnapshot:
        grants = self._fetch_grants(user_id)
        return ActorSnapshot(
            user_id=user_id,
            roles=frozenset(role for role, _, _, _ in grants),
            permissions=frozenset(name for _, name, _, _ in grants if name is not None),
        )

    def check_access(self, user_id: str, resource: str, action: str) -> AccessCheck:
        """Allow when an active permission carries exactly this resource and action."""

        try:
            grants = self._fetch_grants(user_id)
        except SQLAlchemyError:
            self._logger.exception(
                "access_check_failed",
                extra={"user_id": user_id, "resource": resource, "action": action},
            )
            return AccessCheck(has_access=False, roles=[], permissions=[])

        has_access = any(
            name is not None and perm_resource == resource and perm_action == action
            for _, name, perm_resource, perm_action in grants
        )
        return AccessCheck(
            has_access=has_access,
            roles=sorted({role for role, _, _, _ in grants}),
            permissions=sorted({name for _, name, _, _ in grants if name is not None}),
        )

    def _held_permission_names(
        self,
        user_id: str,
        names: Set[str],
        resource: Optional[str],
    ) -> Set[str]:
        """Subset of ``names`` granted through active roles, links and permissions."""

        stmt = (
            select(Permission.name)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .join(Role, Role.id == RolePermission.role_id)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(
                UserRole.user_id == user_id,
                UserRole.is_active.is_(True),
                Role.is_active.is_(True),
                RolePermission.is_active.is_(True),
                Permission.is_active.is_(True),
                Permission.name.in_(names),
            )
            .distinct()
        )
        if resource is not None:
            stmt = stmt.where(Permission.resource == resource)
        return set(self._session.scalars(stmt))

    def _fetch_grants(
        self,
        user_id: str,
    ) -> List[Tuple[str, Optional[str], Optional[str], Optional[str]]]:
        stmt = (
            select(Role.name, Permission.name, Permission.resource, Permission.action)
            .select_from(UserRole)
            .join(Role, Role.id == UserRole.role_id)
            .outerjoin(
                RolePermission,
                and_(RolePermission.role_id == Role.id, RolePermission.is_active.is_(True)),
            )
            .outerjoin(
                Permission,
                and_(Permission.id == RolePermission.permission_id, Permission.is_active.is_(True)),
            )
            .where(
                UserRole.user_id == user_id,
                UserRole.is_active.is_(True),
                Role.is_active.is_(True),
            )
        )
        return [tuple(row) for row in self._session.execute(stmt)]
