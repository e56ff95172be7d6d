"""SQLAlchemy ORM models for the authorization core."""

from fundauth.models.base import Base  # noqa: F401
from fundauth.models.audit_log import AuditLog  # noqa: F401
from fundauth.models.permission import Permission  # noqa: F401
from fundauth.models.permission_audit import PermissionAssignmentAudit, PermissionAuditAction  # noqa: F401
from fundauth.models.role import Role  # noqa: F401
from fundauth.models.role_assignment import RoleAssignment  # noqa: F401
from fundauth.models.role_permission import RolePermission  # noqa: F401
from fundauth.models.user_role import UserRole  # noqa: F401
