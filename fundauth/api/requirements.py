"""Requirement sets attached to routes."""

from __future__ import annotations

from fundauth.core.config import get_settings
from fundauth.services.access import RequirementSet, requirements

_SUPER_ADMIN = get_settings().super_admin_role

PUBLIC = RequirementSet(public=True)
AUTHENTICATED = RequirementSet()

ADMIN_ONLY = requirements(all_roles=[_SUPER_ADMIN])
MANAGE_USER_ROLES = requirements(all_roles=[_SUPER_ADMIN], all_permissions=["USER:MANAGE_ROLES"])

ROLE_READ = requirements(any_permission=["ROLE:READ"])
PERMISSION_READ = requirements(any_permission=["PERMISSION:READ"])
USER_READ = requirements(any_permission=["USER:READ", "USER:MANAGE_ROLES"])
AUDIT_READ = requirements(any_permission=["AUDIT:READ"])
