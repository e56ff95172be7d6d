"""Permission store: lifecycle of Permission rows."""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fundauth.models.permission import Permission
from fundauth.models.role_permission import RolePermission
from fundauth.schemas.permission import PermissionCreate, PermissionUpdate
from fundauth.services.audit import AuditService
from fundauth.services.errors import BadRequestError, PermissionConflictError, PermissionNotFoundError

GENERAL_RESOURCE = "GENERAL"


class PermissionService:
    """Coordinates permission CRUD with the same guards as roles."""

    def __init__(self, session: Session, audit_service: Optional[AuditService] = None) -> None:
        self._session = session
        self._audit = audit_service or AuditService(session)
        self._logger = logging.getLogger("fundauth.services.permissions")

    def create_permission(self, payload: PermissionCreate, *, actor_id: Optional[str]) -> Permission:
        if self._find_by_name(payload.name) is not None:
            raise PermissionConflictError(f"Permission '{payload.name}' already exists")

        permission = Permission(
            name=payload.name,
            description=payload.description,
            resource=payload.resource,
            action=payload.action,
            is_active=payload.is_active,
        )
        try:
            with self._session.begin_nested():
                self._session.add(permission)
                self._session.flush()
                self._audit.record(
                    action="permission.create",
                    actor_id=actor_id,
                    resource_type="permission",
                    resource_id=permission.id,
                    details={"name": permission.name, "resource": permission.resource, "action": permission.action},
                )
        except IntegrityError as exc:
            raise PermissionConflictError(f"Permission '{payload.name}' already exists") from exc

        self._logger.info(
            "permission_created",
            extra={"permission_id": str(permission.id), "permission_name": permission.name, "actor_id": actor_id},
        )
        return permission

    def get_permission(self, permission_id: UUID) -> Permission:
        permission = self._session.get(Permission, permission_id)
        if not permission:
            raise PermissionNotFoundError(f"Permission {permission_id} not found")
        return permission

    def get_permission_by_name(self, name: str) -> Permission:
        permission = self._find_by_name(name)
        if not permission:
            raise PermissionNotFoundError(f"Permission '{name}' not found")
        return permission

    def list_permissions(self, *, include_inactive: bool = False) -> List[Permission]:
        stmt = select(Permission)
        if not include_inactive:
            stmt = stmt.where(Permission.is_active.is_(True))
        stmt = stmt.order_by(Permission.resource, Permission.name)
        return list(self._session.scalars(stmt))

    def list_by_resource(self) -> Dict[str, List[Permission]]:
        """Group active permissions by resource; a null resource lands under GENERAL."""

        grouped: Dict[str, List[Permission]] = OrderedDict()
        for permission in self.list_permissions():
            grouped.setdefault(permission.resource or GENERAL_RESOURCE, []).append(permission)
        return grouped

    def list_for_resource(self, resource: str) -> List[Permission]:
        stmt = (
            select(Permission)
            .where(Permission.resource == resource, Permission.is_active.is_(True))
            .order_by(Permission.name)
        )
        return list(self._session.scalars(stmt))

    def count_active_roles(self, permission_id: UUID) -> int:
        stmt = select(func.count(RolePermission.id)).where(
            RolePermission.permission_id == permission_id,
            RolePermission.is_active.is_(True),
        )
        return int(self._session.scalar(stmt) or 0)

    def update_permission(
        self,
        permission_id: UUID,
        payload: PermissionUpdate,
        *,
        actor_id: Optional[str],
    ) -> Permission:
        permission = self.get_permission(permission_id)
        updates = payload.model_dump(exclude_unset=True)

        new_name = updates.get("name")
        if new_name is not None and new_name != permission.name:
            clash = self._find_by_name(new_name)
            if clash is not None and clash.id != permission.id:
                raise PermissionConflictError(f"Permission '{new_name}' already exists")

        if updates.get("is_active") is False and permission.is_active:
            self._ensure_deactivatable(permission)

        try:
            with self._session.begin_nested():
                for field in ("name", "description", "resource", "action", "is_active"):
                    if field not in updates:
                        continue
                    if field in ("name", "is_active") and updates[field] is None:
                        continue
                    setattr(permission, field, updates[field])
                self._session.flush()
                self._audit.record(
                    action="permission.update",
                    actor_id=actor_id,
                    resource_type="permission",
                    resource_id=permission.id,
                    details={"changes": updates},
                )
        except IntegrityError as exc:
            raise PermissionConflictError(f"Permission '{new_name or permission.name}' already exists") from exc

        self._logger.info("permission_updated", extra={"permission_id": str(permission.id), "actor_id": actor_id})
        return permission

    def delete_permission(self, permission_id: UUID, *, actor_id: Optional[str]) -> Permission:
        permission = self.get_permission(permission_id)
        self._ensure_deactivatable(permission)

        with self._session.begin_nested():
            permission.is_active = False
            self._session.flush()
            self._audit.record(
                action="permission.delete",
                actor_id=actor_id,
                resource_type="permission",
                resource_id=permission.id,
                details={"name": permission.name},
            )

        self._logger.info("permission_deleted", extra={"permission_id": str(permission.id), "actor_id": actor_id})
        return permission

    def _ensure_deactivatable(self, permission: Permission) -> None:
        roles = self.count_active_roles(permission.id)
        if roles:
            raise BadRequestError(
                f"Cannot delete permission '{permission.name}': assigned to {roles} role(s)",
                reason="permission has active roles",
            )

    def _find_by_name(self, name: str) -> Optional[Permission]:
        return self._session.scalar(select(Permission).where(Permission.name == name))
