"""Dependency injection helpers for FastAPI routes."""

from typing import Iterator, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from fundauth.api.identity import resolve_actor
from fundauth.core.database import get_session
from fundauth.services.access import AccessEvaluator, Actor, RequirementSet
from fundauth.services.assignments import AssignmentService
from fundauth.services.audit import AuditService
from fundauth.services.bootstrap import BootstrapService
from fundauth.services.effective import EffectiveAccessService
from fundauth.services.permissions import PermissionService
from fundauth.services.roles import RoleService


def get_db_session() -> Iterator[Session]:
    yield from get_session()


def get_audit_service(session: Session = Depends(get_db_session)) -> AuditService:
    return AuditService(session)


def get_role_service(session: Session = Depends(get_db_session)) -> RoleService:
    return RoleService(session)


def get_permission_service(session: Session = Depends(get_db_session)) -> PermissionService:
    return PermissionService(session)


def get_assignment_service(session: Session = Depends(get_db_session)) -> AssignmentService:
    return AssignmentService(session)


def get_effective_access_service(session: Session = Depends(get_db_session)) -> EffectiveAccessService:
    return EffectiveAccessService(session)


def get_bootstrap_service(session: Session = Depends(get_db_session)) -> BootstrapService:
    return BootstrapService(session)


class Authorize:
    """Route guard: ``Depends(Authorize(ADMIN_ONLY))``.

    Returns the resolved actor (``None`` on public routes) so handlers can
    record who acted.
    """

    def __init__(self, requirement_set: RequirementSet) -> None:
        self.requirements = requirement_set

    def __call__(
        self,
        request: Request,
        session: Session = Depends(get_db_session),
    ) -> Optional[Actor]:
        if self.requirements.public:
            return None
        actor = resolve_actor(request)
        AccessEvaluator(EffectiveAccessService(session)).evaluate(self.requirements, actor)
        return actor
