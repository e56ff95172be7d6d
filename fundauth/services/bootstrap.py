"""Idempotent seeding of the permission and role catalog."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from fundauth.core.config import AppSettings, get_settings
from fundauth.models.catalog import PERMISSIONS, ROLES, get_role_permission_mapping
from fundauth.schemas.permission import PermissionCreate
from fundauth.schemas.role import RoleCreate
from fundauth.services.assignments import AssignmentService
from fundauth.services.audit import AuditService
from fundauth.services.errors import AssignmentConflictError, NotFoundError
from fundauth.services.permissions import PermissionService
from fundauth.services.roles import RoleService


@dataclass
class BootstrapResult:
    permissions_created: int = 0
    roles_created: int = 0
    role_permissions_assigned: int = 0
    skipped_assignments: int = 0
    failed_assignments: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


class BootstrapService:
    """Creates whatever part of the catalog is missing; never deletes or detaches."""

    def __init__(
        self,
        session: Session,
        audit_service: Optional[AuditService] = None,
        settings: Optional[AppSettings] = None,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._audit = audit_service or AuditService(session)
        self._roles = RoleService(session, self._audit)
        self._permissions = PermissionService(session, self._audit)
        self._assignments = AssignmentService(session, self._audit, self._settings)
        self._logger = logging.getLogger("fundauth.services.bootstrap")

    def run(self, *, actor_id: Optional[str] = None) -> BootstrapResult:
        actor = actor_id or self._settings.system_actor_id
        result = BootstrapResult()
        self._logger.info("rbac_bootstrap_started", extra={"actor_id": actor})

        permission_ids: Dict[str, UUID] = {}
        for definition in PERMISSIONS:
            try:
                existing = self._permissions.get_permission_by_name(definition.name)
            except NotFoundError:
                created = self._permissions.create_permission(
                    PermissionCreate(
                        name=definition.name,
                        description=definition.description,
                        resource=definition.resource,
                        action=definition.action,
                    ),
                    actor_id=actor,
                )
                permission_ids[definition.name] = created.id
                result.permissions_created += 1
            else:
                self._logger.debug("permission_exists", extra={"permission_name": definition.name})
                permission_ids[definition.name] = existing.id

        role_ids: Dict[str, UUID] = {}
        for definition in ROLES:
            try:
                existing_role = self._roles.get_role_by_name(definition.name)
            except NotFoundError:
                make_default = definition.is_default and self._roles.get_default_role() is None
                created_role = self._roles.create_role(
                    RoleCreate(name=definition.name, description=definition.description, is_default=make_default),
                    actor_id=actor,
                )
                role_ids[definition.name] = created_role.id
                result.roles_created += 1
            else:
                self._logger.debug("role_exists", extra={"role_name": definition.name})
                role_ids[definition.name] = existing_role.id

        for role_name, permission_names in get_role_permission_mapping().items():
            for permission_name in permission_names:
                try:
                    self._assignments.assign_permission_to_role(
                        role_ids[role_name],
                        permission_ids[permission_name],
                        actor_id=actor,
                    )
                except AssignmentConflictError:
                    result.skipped_assignments += 1
                except NotFoundError as exc:
                    result.failed_assignments += 1
                    self._logger.warning(
                        "bootstrap_assignment_failed",
                        extra={"role_name": role_name, "permission_name": permission_name, "error": exc.reason},
                    )
                else:
                    result.role_permissions_assigned += 1

        self._audit.record(
            action="rbac.bootstrap",
            actor_id=actor,
            resource_type="system",
            details=result.as_dict(),
        )
        self._logger.info("rbac_bootstrap_completed", extra=result.as_dict())
        return result

    def grant_super_admin(self, user_id: str, *, actor_id: Optional[str] = None) -> bool:
        """Give ``user_id`` the super-admin role; False when already held."""

        role = self._roles.get_role_by_name(self._settings.super_admin_role)
        try:
            self._assignments.assign_role(
                user_id,
                role.id,
                assigned_by=actor_id or self._settings.system_actor_id,
                reason="Bootstrap administrator",
            )
        except AssignmentConflictError:
            return False
        return True
