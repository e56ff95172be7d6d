"""Role store: lifecycle of Role rows."""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fundauth.models.role import Role
from fundauth.models.user_role import UserRole
from fundauth.schemas.role import RoleCreate, RoleUpdate
from fundauth.services.audit import AuditService
from fundauth.services.errors import BadRequestError, RoleConflictError, RoleNotFoundError


class RoleService:
    """Creates, updates and soft-deletes roles while keeping the default singleton."""

    def __init__(self, session: Session, audit_service: Optional[AuditService] = None) -> None:
        self._session = session
        self._audit = audit_service or AuditService(session)
        self._logger = logging.getLogger("fundauth.services.roles")

    def create_role(self, payload: RoleCreate, *, actor_id: Optional[str]) -> Role:
        if self._find_by_name(payload.name) is not None:
            raise RoleConflictError(f"Role '{payload.name}' already exists")
        if payload.is_default and not payload.is_active:
            self._refuse_inactive_default(payload.name)

        role = Role(
            name=payload.name,
            description=payload.description,
            is_active=payload.is_active,
            is_default=False,
        )
        try:
            with self._session.begin_nested():
                if payload.is_default:
                    self._clear_default()
                    role.is_default = True
                self._session.add(role)
                self._session.flush()
                self._audit.record(
                    action="role.create",
                    actor_id=actor_id,
                    resource_type="role",
                    resource_id=role.id,
                    details={"name": role.name, "is_default": role.is_default, "is_active": role.is_active},
                )
        except IntegrityError as exc:
            raise RoleConflictError(f"Role '{payload.name}' already exists") from exc

        self._logger.info(
            "role_created",
            extra={"role_id": str(role.id), "role_name": role.name, "actor_id": actor_id},
        )
        return role

    def get_role(self, role_id: UUID) -> Role:
        role = self._session.get(Role, role_id)
        if not role:
            raise RoleNotFoundError(f"Role {role_id} not found")
        return role

    def get_role_by_name(self, name: str) -> Role:
        role = self._find_by_name(name)
        if not role:
            raise RoleNotFoundError(f"Role '{name}' not found")
        return role

    def get_default_role(self) -> Optional[Role]:
        stmt = select(Role).where(Role.is_default.is_(True), Role.is_active.is_(True))
        return self._session.scalar(stmt)

    def list_roles(self, *, include_inactive: bool = False) -> List[Role]:
        stmt = select(Role)
        if not include_inactive:
            stmt = stmt.where(Role.is_active.is_(True))
        stmt = stmt.order_by(Role.name)
        return list(self._session.scalars(stmt))

    def count_active_users(self, role_id: UUID) -> int:
        stmt = select(func.count(UserRole.id)).where(UserRole.role_id == role_id, UserRole.is_active.is_(True))
        return int(self._session.scalar(stmt) or 0)

    def update_role(self, role_id: UUID, payload: RoleUpdate, *, actor_id: Optional[str]) -> Role:
        role = self.get_role(role_id)
        updates = payload.model_dump(exclude_unset=True)

        new_name = updates.get("name")
        if new_name is not None and new_name != role.name:
            clash = self._find_by_name(new_name)
            if clash is not None and clash.id != role.id:
                raise RoleConflictError(f"Role '{new_name}' already exists")

        if updates.get("is_active") is False and role.is_active:
            self._ensure_deactivatable(role)

        stays_active = updates["is_active"] if updates.get("is_active") is not None else role.is_active
        if updates.get("is_default") is True and not stays_active:
            self._refuse_inactive_default(role.name)

        try:
            with self._session.begin_nested():
                if new_name is not None:
                    role.name = new_name
                if "description" in updates:
                    role.description = updates["description"]
                if updates.get("is_active") is not None:
                    role.is_active = updates["is_active"]
                if updates.get("is_default") is True and not role.is_default:
                    self._clear_default(exclude_id=role.id)
                    role.is_default = True
                elif updates.get("is_default") is False:
                    role.is_default = False

                self._session.add(role)
                self._session.flush()
                self._audit.record(
                    action="role.update",
                    actor_id=actor_id,
                    resource_type="role",
                    resource_id=role.id,
                    details={"changes": updates},
                )
        except IntegrityError as exc:
            raise RoleConflictError(f"Role '{new_name or role.name}' already exists") from exc

        self._logger.info("role_updated", extra={"role_id": str(role.id), "actor_id": actor_id})
        return role

    def delete_role(self, role_id: UUID, *, actor_id: Optional[str]) -> Role:
        """Soft delete; refused while the role is the default or still held by a user."""

        role = self.get_role(role_id)
        self._ensure_deactivatable(role)

        with self._session.begin_nested():
            role.is_active = False
            self._session.flush()
            self._audit.record(
                action="role.delete",
                actor_id=actor_id,
                resource_type="role",
                resource_id=role.id,
                details={"name": role.name},
            )

        self._logger.info("role_deleted", extra={"role_id": str(role.id), "actor_id": actor_id})
        return role

    def _ensure_deactivatable(self, role: Role) -> None:
        if role.is_default:
            raise BadRequestError(f"Cannot delete default role '{role.name}'", reason="role is default")
        users = self.count_active_users(role.id)
        if users:
            raise BadRequestError(
                f"Cannot delete role '{role.name}': assigned to {users} user(s)",
                reason="role has active users",
            )

    @staticmethod
    def _refuse_inactive_default(name: str) -> None:
        raise BadRequestError(f"Inactive role '{name}' cannot be the default", reason="role is inactive")

    def _clear_default(self, *, exclude_id: Optional[UUID] = None) -> None:
        stmt = update(Role).where(Role.is_default.is_(True))
        if exclude_id is not None:
            stmt = stmt.where(Role.id != exclude_id)
        self._session.execute(
            stmt.values(is_default=False).execution_options(synchronize_session="fetch")
        )

    def _find_by_name(self, name: str) -> Optional[Role]:
        return self._session.scalar(select(Role).where(Role.name == name))
