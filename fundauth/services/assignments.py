"""Assignment engine: user-role and role-permission links with their audit trail."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Union
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from fundauth.core.config import AppSettings, get_settings
from fundauth.core.database import supports_row_locks
from fundauth.models.catalog import COMPLIANCE_OFFICER, FUND_MANAGER, INVESTOR
from fundauth.models.permission import Permission
from fundauth.models.permission_audit import PermissionAssignmentAudit, PermissionAuditAction
from fundauth.models.role import Role
from fundauth.models.role_assignment import RoleAssignment
from fundauth.models.role_permission import RolePermission
from fundauth.models.user_role import UserRole
from fundauth.services.audit import AuditService
from fundauth.services.errors import (
    AssignmentConflictError,
    AssignmentNotFoundError,
    AuthzError,
    BadRequestError,
    PermissionNotFoundError,
    RoleNotFoundError,
)


@dataclass
class BulkFailure:
    item_id: str
    error: str


@dataclass
class BulkResult:
    """Per-item outcome of a bulk operation; successes are never rolled back."""

    success_count: int = 0
    failures: List[BulkFailure] = field(default_factory=list)

    @property
    def outcome(self) -> str:
        if not self.failures:
            return "succeeded" if self.success_count else "empty"
        return "partial" if self.success_count else "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AssignmentService:
    """Links users to roles and roles to permissions.

    Every single-item mutation runs in its own SAVEPOINT covering the link
    change, the history record and the audit rows, so a failing item leaves
    nothing behind and never disturbs earlier work in the same request.
    """

    def __init__(
        self,
        session: Session,
        audit_service: Optional[AuditService] = None,
        settings: Optional[AppSettings] = None,
    ) -> None:
        self._session = session
        self._audit = audit_service or AuditService(session)
        self._settings = settings or get_settings()
        self._logger = logging.getLogger("fundauth.services.assignments")

    # User <-> role

    def assign_role(
        self,
        user_id: str,
        role_id: UUID,
        *,
        assigned_by: str,
        reason: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> UserRole:
        role = self._get_active_role(role_id)

        try:
            with self._session.begin_nested():
                link = self._find_user_link(user_id, role_id)
                if link is not None and link.is_active:
                    raise AssignmentConflictError(f"Role '{role.name}' is already assigned to user {user_id}")

                reactivated = link is not None
                if link is None:
                    link = UserRole(user_id=user_id, role_id=role_id, is_active=True)
                    self._session.add(link)
                    self._session.flush()
                else:
                    self._reactivate(link, f"Role '{role.name}' is already assigned to user {user_id}")

                self._session.add(
                    RoleAssignment(
                        user_id=user_id,
                        role_id=role_id,
                        assigned_by=assigned_by,
                        reason=reason,
                        assigned_at=_utcnow(),
                        expires_at=self._normalize_datetime(expires_at),
                        is_active=True,
                    )
                )
                self._session.flush()
                self._audit.record(
                    action="role.assign",
                    actor_id=assigned_by,
                    resource_type="role",
                    resource_id=role_id,
                    target_user_id=user_id,
                    details={"role_name": role.name, "reason": reason, "reactivated": reactivated},
                )
        except IntegrityError as exc:
            raise AssignmentConflictError(f"Role '{role.name}' is already assigned to user {user_id}") from exc

        self._logger.info(
            "role_assigned",
            extra={"user_id": user_id, "role_id": str(role_id), "role_name": role.name, "actor_id": assigned_by},
        )
        return link

    def revoke_role(
        self,
        user_id: str,
        role_id: UUID,
        *,
        revoked_by: str,
        reason: Optional[str] = None,
    ) -> UserRole:
        """Revoke one role, refusing to leave the user with no active role."""

        return self._revoke_role(user_id, role_id, revoked_by=revoked_by, reason=reason, enforce_minimum=True)

    def revoke_all_roles(self, user_id: str, *, revoked_by: str, reason: str = "Role cleanup") -> List[str]:
        """Revoke every active role of a user; the only path allowed to reach zero roles."""

        links = list(
            self._session.scalars(
                select(UserRole).where(UserRole.user_id == user_id, UserRole.is_active.is_(True))
            )
        )
        revoked: List[str] = []
        for link in links:
            role_name = link.role.name
            self._revoke_role(user_id, link.role_id, revoked_by=revoked_by, reason=reason, enforce_minimum=False)
            revoked.append(role_name)

        self._logger.info(
            "roles_revoked_all",
            extra={"user_id": user_id, "revoked": revoked, "actor_id": revoked_by},
        )
        return revoked

    def bulk_assign_roles(
        self,
        user_ids: Sequence[str],
        role_id: UUID,
        *,
        assigned_by: str,
        reason: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> BulkResult:
        self._enforce_bulk_ceiling(len(user_ids))
        self._get_active_role(role_id)

        result = BulkResult()
        for user_id in user_ids:
            try:
                self.assign_role(user_id, role_id, assigned_by=assigned_by, reason=reason, expires_at=expires_at)
            except (AuthzError, SQLAlchemyError) as exc:
                result.failures.append(BulkFailure(item_id=user_id, error=self._failure_text(exc)))
                self._logger.warning(
                    "bulk_role_assignment_item_failed",
                    extra={"user_id": user_id, "role_id": str(role_id), "error": self._failure_text(exc)},
                )
            else:
                result.success_count += 1

        self._logger.info(
            "bulk_role_assignment_completed",
            extra={
                "role_id": str(role_id),
                "success_count": result.success_count,
                "failure_count": len(result.failures),
                "outcome": result.outcome,
            },
        )
        return result

    def assign_default_role(self, user_id: str, *, assigned_by: str) -> UserRole:
        role = self._session.scalar(select(Role).where(Role.is_default.is_(True), Role.is_active.is_(True)))
        if role is None:
            role = self._session.scalar(select(Role).where(Role.name == INVESTOR, Role.is_active.is_(True)))
        if role is None:
            raise RoleNotFoundError("No default role configured", reason="no default role")
        return self.assign_role(user_id, role.id, assigned_by=assigned_by, reason="Default role assignment")

    def initialize_user(self, user_id: str, *, assigned_by: Optional[str] = None) -> bool:
        """Give a user the default role unless they already hold an active one."""

        if self._count_active_links(user_id):
            return False
        self.assign_default_role(user_id, assigned_by=assigned_by or self._settings.system_actor_id)
        return True

    def promote_to_fund_manager(self, user_id: str, *, assigned_by: str) -> UserRole:
        return self._assign_named_role(
            user_id, FUND_MANAGER, assigned_by=assigned_by, reason="Promoted to Fund Manager"
        )

    def assign_compliance_officer(self, user_id: str, *, assigned_by: str) -> UserRole:
        return self._assign_named_role(
            user_id, COMPLIANCE_OFFICER, assigned_by=assigned_by, reason="Assigned as Compliance Officer"
        )

    def get_role_assignment_history(self, user_id: str) -> List[RoleAssignment]:
        stmt = (
            select(RoleAssignment)
            .where(RoleAssignment.user_id == user_id)
            .order_by(RoleAssignment.assigned_at.desc())
        )
        return list(self._session.scalars(stmt))

    def get_users_with_role(self, role_id: UUID) -> List[str]:
        self._get_role(role_id)
        stmt = (
            select(UserRole.user_id)
            .where(UserRole.role_id == role_id, UserRole.is_active.is_(True))
            .order_by(UserRole.user_id)
        )
        return list(self._session.scalars(stmt))

    def user_has_role(self, user_id: str, role_name: str) -> bool:
        return self.user_has_any_role(user_id, [role_name])

    def user_has_any_role(self, user_id: str, role_names: Iterable[str]) -> bool:
        names = list(role_names)
        if not names:
            return False
        stmt = (
            select(func.count(UserRole.id))
            .join(Role, UserRole.role_id == Role.id)
            .where(
                UserRole.user_id == user_id,
                UserRole.is_active.is_(True),
                Role.is_active.is_(True),
                Role.name.in_(names),
            )
        )
        return bool(self._session.scalar(stmt))

    # Role <-> permission

    def assign_permission_to_role(self, role_id: UUID, permission_id: UUID, *, actor_id: str) -> RolePermission:
        role = self._get_active_role(role_id)
        permission = self._get_active_permission(permission_id)
        conflict_message = f"Permission '{permission.name}' is already assigned to role '{role.name}'"

        try:
            with self._session.begin_nested():
                link = self._session.scalar(
                    self._lockable(
                        select(RolePermission).where(
                            RolePermission.role_id == role_id,
                            RolePermission.permission_id == permission_id,
                        )
                    )
                )
                if link is not None and link.is_active:
                    raise AssignmentConflictError(conflict_message)

                if link is None:
                    link = RolePermission(role_id=role_id, permission_id=permission_id, is_active=True)
                    self._session.add(link)
                    self._session.flush()
                else:
                    self._reactivate(link, conflict_message)

                self._record_permission_change(PermissionAuditAction.GRANT, role, permission, actor_id)
        except IntegrityError as exc:
            raise AssignmentConflictError(conflict_message) from exc

        self._logger.info(
            "permission_assigned",
            extra={"role_id": str(role_id), "permission_id": str(permission_id), "actor_id": actor_id},
        )
        return link

    def revoke_permission_from_role(self, role_id: UUID, permission_id: UUID, *, actor_id: str) -> RolePermission:
        role = self._get_role(role_id)
        permission = self._session.get(Permission, permission_id)
        if permission is None:
            raise PermissionNotFoundError(f"Permission {permission_id} not found")

        missing_message = f"Permission '{permission.name}' is not assigned to role '{role.name}'"

        with self._session.begin_nested():
            link = self._session.scalar(
                self._lockable(
                    select(RolePermission).where(
                        RolePermission.role_id == role_id,
                        RolePermission.permission_id == permission_id,
                        RolePermission.is_active.is_(True),
                    )
                )
            )
            if link is None:
                raise AssignmentNotFoundError(missing_message)
            self._deactivate(link, missing_message)
            self._record_permission_change(PermissionAuditAction.REVOKE, role, permission, actor_id)

        self._logger.info(
            "permission_revoked",
            extra={"role_id": str(role_id), "permission_id": str(permission_id), "actor_id": actor_id},
        )
        return link

    def bulk_assign_permissions(
        self,
        role_id: UUID,
        permission_ids: Sequence[UUID],
        *,
        actor_id: str,
    ) -> BulkResult:
        self._enforce_bulk_ceiling(len(permission_ids))
        self._get_active_role(role_id)

        result = BulkResult()
        for permission_id in permission_ids:
            try:
                self.assign_permission_to_role(role_id, permission_id, actor_id=actor_id)
            except (AuthzError, SQLAlchemyError) as exc:
                result.failures.append(BulkFailure(item_id=str(permission_id), error=self._failure_text(exc)))
                self._logger.warning(
                    "bulk_permission_assignment_item_failed",
                    extra={"role_id": str(role_id), "permission_id": str(permission_id), "error": self._failure_text(exc)},
                )
            else:
                result.success_count += 1

        self._logger.info(
            "bulk_permission_assignment_completed",
            extra={
                "role_id": str(role_id),
                "success_count": result.success_count,
                "failure_count": len(result.failures),
                "outcome": result.outcome,
            },
        )
        return result

    def get_role_permissions(self, role_id: UUID) -> List[Permission]:
        self._get_role(role_id)
        stmt = (
            select(Permission)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(
                RolePermission.role_id == role_id,
                RolePermission.is_active.is_(True),
                Permission.is_active.is_(True),
            )
            .order_by(Permission.name)
        )
        return list(self._session.scalars(stmt))

    def get_permission_audit_trail(
        self,
        *,
        role_id: Optional[UUID] = None,
        limit: int = 100,
    ) -> List[PermissionAssignmentAudit]:
        stmt = select(PermissionAssignmentAudit)
        if role_id:
            stmt = stmt.filter(PermissionAssignmentAudit.role_id == role_id)
        stmt = stmt.order_by(PermissionAssignmentAudit.occurred_at.desc()).limit(limit)
        return list(self._session.scalars(stmt))

    # Internals

    def _assign_named_role(self, user_id: str, role_name: str, *, assigned_by: str, reason: str) -> UserRole:
        role = self._session.scalar(select(Role).where(Role.name == role_name))
        if role is None:
            raise RoleNotFoundError(f"Role '{role_name}' not found")
        return self.assign_role(user_id, role.id, assigned_by=assigned_by, reason=reason)

    def _revoke_role(
        self,
        user_id: str,
        role_id: UUID,
        *,
        revoked_by: str,
        reason: Optional[str],
        enforce_minimum: bool,
    ) -> UserRole:
        role = self._get_role(role_id)
        missing_message = f"Role '{role.name}' is not assigned to user {user_id}"

        with self._session.begin_nested():
            active_links = list(
                self._session.scalars(
                    self._lockable(
                        select(UserRole).where(UserRole.user_id == user_id, UserRole.is_active.is_(True))
                    )
                )
            )
            link = next((item for item in active_links if item.role_id == role_id), None)
            if link is None:
                raise AssignmentNotFoundError(missing_message)
            if enforce_minimum and len(active_links) <= 1:
                raise BadRequestError(
                    f"Cannot revoke role '{role.name}': user {user_id} must keep at least one active role",
                    reason="last active role",
                )

            self._deactivate(link, missing_message)

            record = self._session.scalar(
                select(RoleAssignment)
                .where(
                    RoleAssignment.user_id == user_id,
                    RoleAssignment.role_id == role_id,
                    RoleAssignment.is_active.is_(True),
                )
                .order_by(RoleAssignment.assigned_at.desc())
                .limit(1)
            )
            if record is not None:
                record.is_active = False
                record.revoked_at = _utcnow()
                record.revoked_by = revoked_by
                record.revoke_reason = reason
                self._session.flush()

            self._audit.record(
                action="role.revoke",
                actor_id=revoked_by,
                resource_type="role",
                resource_id=role_id,
                target_user_id=user_id,
                details={"role_name": role.name, "reason": reason},
            )

        self._logger.info(
            "role_revoked",
            extra={"user_id": user_id, "role_id": str(role_id), "role_name": role.name, "actor_id": revoked_by},
        )
        return link

    def _record_permission_change(
        self,
        action: PermissionAuditAction,
        role: Role,
        permission: Permission,
        actor_id: str,
    ) -> None:
        self._session.add(
            PermissionAssignmentAudit(
                action=action,
                actor_id=actor_id,
                role_id=role.id,
                permission_id=permission.id,
                occurred_at=_utcnow(),
            )
        )
        self._session.flush()
        self._audit.record(
            action="permission.assign" if action is PermissionAuditAction.GRANT else "permission.revoke",
            actor_id=actor_id,
            resource_type="role",
            resource_id=role.id,
            details={"role_name": role.name, "permission_id": str(permission.id), "permission_name": permission.name},
        )

    def _reactivate(self, link: Union[UserRole, RolePermission], conflict_message: str) -> None:
        # Compare-and-set: only one concurrent caller can flip an inactive link.
        if not self._flip_active(link, to_active=True):
            raise AssignmentConflictError(conflict_message)

    def _deactivate(self, link: Union[UserRole, RolePermission], missing_message: str) -> None:
        if not self._flip_active(link, to_active=False):
            raise AssignmentNotFoundError(missing_message)

    def _flip_active(self, link: Union[UserRole, RolePermission], *, to_active: bool) -> bool:
        model = type(link)
        result = self._session.execute(
            update(model)
            .where(model.id == link.id, model.is_active.is_(not to_active))
            .values(is_active=to_active)
            .execution_options(synchronize_session=False)
        )
        self._session.expire(link, ["is_active", "updated_at"])
        return result.rowcount == 1

    def _find_user_link(self, user_id: str, role_id: UUID) -> Optional[UserRole]:
        stmt = select(UserRole).where(UserRole.user_id == user_id, UserRole.role_id == role_id)
        return self._session.scalar(self._lockable(stmt))

    def _count_active_links(self, user_id: str) -> int:
        stmt = select(func.count(UserRole.id)).where(UserRole.user_id == user_id, UserRole.is_active.is_(True))
        return int(self._session.scalar(stmt) or 0)

    def _lockable(self, stmt):  # noqa: ANN001, ANN202
        if supports_row_locks(self._session):
            return stmt.with_for_update()
        return stmt

    def _enforce_bulk_ceiling(self, count: int) -> None:
        ceiling = self._settings.bulk_max_items
        if count > ceiling:
            raise BadRequestError(
                f"Bulk operation accepts at most {ceiling} items, received {count}",
                reason="bulk limit exceeded",
            )

    def _get_role(self, role_id: UUID) -> Role:
        role = self._session.get(Role, role_id)
        if not role:
            raise RoleNotFoundError(f"Role {role_id} not found")
        return role

    def _get_active_role(self, role_id: UUID) -> Role:
        role = self._get_role(role_id)
        if not role.is_active:
            raise RoleNotFoundError(f"Role {role_id} is inactive", reason="role inactive")
        return role

    def _get_active_permission(self, permission_id: UUID) -> Permission:
        permission = self._session.get(Permission, permission_id)
        if not permission:
            raise PermissionNotFoundError(f"Permission {permission_id} not found")
        if not permission.is_active:
            raise PermissionNotFoundError(f"Permission {permission_id} is inactive", reason="permission inactive")
        return permission

    @staticmethod
    def _failure_text(exc: Exception) -> str:
        if isinstance(exc, AuthzError):
            return exc.reason
        return str(exc)

    @staticmethod
    def _normalize_datetime(value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
