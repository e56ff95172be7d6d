"""Static permission and role catalog for the fund administration platform."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class PermissionDefinition:
    name: str
    resource: str
    action: str
    description: str


@dataclass(frozen=True)
class RoleDefinition:
    name: str
    description: str
    is_default: bool = False


SUPER_ADMIN = "SUPER_ADMIN"
FUND_MANAGER = "FUND_MANAGER"
INVESTOR = "INVESTOR"
COMPLIANCE_OFFICER = "COMPLIANCE_OFFICER"
ANALYST = "ANALYST"
VIEWER = "VIEWER"


def _permission(resource: str, action: str, description: str) -> PermissionDefinition:
    return PermissionDefinition(
        name=f"{resource}:{action}",
        resource=resource,
        action=action,
        description=description,
    )


PERMISSIONS: Tuple[PermissionDefinition, ...] = (
    _permission("USER", "CREATE", "Create new users"),
    _permission("USER", "READ", "View user information"),
    _permission("USER", "UPDATE", "Update user details"),
    _permission("USER", "DELETE", "Delete/deactivate users"),
    _permission("USER", "MANAGE_ROLES", "Assign/revoke roles"),
    _permission("ROLE", "CREATE", "Create new roles"),
    _permission("ROLE", "READ", "View roles"),
    _permission("ROLE", "UPDATE", "Update role details"),
    _permission("ROLE", "DELETE", "Delete roles"),
    _permission("ROLE", "ASSIGN", "Assign roles to users"),
    _permission("PERMISSION", "CREATE", "Create new permissions"),
    _permission("PERMISSION", "READ", "View permissions"),
    _permission("PERMISSION", "UPDATE", "Update permissions"),
    _permission("PERMISSION", "DELETE", "Delete permissions"),
    _permission("PERMISSION", "ASSIGN", "Assign permissions to roles"),
    _permission("FUND", "CREATE", "Create new funds"),
    _permission("FUND", "READ", "View fund information"),
    _permission("FUND", "UPDATE", "Update fund details"),
    _permission("FUND", "DELETE", "Delete funds"),
    _permission("FUND", "MANAGE_PERFORMANCE", "Update performance metrics"),
    _permission("INVESTMENT", "CREATE", "Create investments"),
    _permission("INVESTMENT", "READ", "View all investments"),
    _permission("INVESTMENT", "UPDATE", "Update investment details"),
    _permission("INVESTMENT", "DELETE", "Delete investments"),
    _permission("INVESTMENT", "READ_OWN", "View own investments only"),
    _permission("CAPITAL_CALL", "CREATE", "Create capital calls"),
    _permission("CAPITAL_CALL", "READ", "View capital calls"),
    _permission("CAPITAL_CALL", "UPDATE", "Update capital calls"),
    _permission("CAPITAL_CALL", "DELETE", "Delete capital calls"),
    _permission("CAPITAL_CALL", "PROCESS", "Process capital call payments"),
    _permission("DISTRIBUTION", "CREATE", "Create distributions"),
    _permission("DISTRIBUTION", "READ", "View distributions"),
    _permission("DISTRIBUTION", "UPDATE", "Update distributions"),
    _permission("DISTRIBUTION", "DELETE", "Delete distributions"),
    _permission("DISTRIBUTION", "PROCESS", "Process distribution payments"),
    _permission("DOCUMENT", "CREATE", "Upload documents"),
    _permission("DOCUMENT", "READ", "View documents"),
    _permission("DOCUMENT", "UPDATE", "Update document metadata"),
    _permission("DOCUMENT", "DELETE", "Delete documents"),
    _permission("DOCUMENT", "READ_CONFIDENTIAL", "Access confidential documents"),
    _permission("REPORT", "GENERATE", "Generate reports"),
    _permission("REPORT", "VIEW_PERFORMANCE", "View performance reports"),
    _permission("REPORT", "VIEW_COMPLIANCE", "View compliance reports"),
    _permission("REPORT", "EXPORT", "Export data and reports"),
    _permission("COMMUNICATION", "CREATE", "Create announcements and messages"),
    _permission("COMMUNICATION", "READ", "View communications"),
    _permission("COMMUNICATION", "UPDATE", "Update communications"),
    _permission("COMMUNICATION", "DELETE", "Delete communications"),
    _permission("PORTFOLIO", "READ", "View portfolio information"),
    _permission("PORTFOLIO", "READ_OWN", "View own portfolio only"),
    _permission("PORTFOLIO", "ANALYZE", "Perform portfolio analysis"),
    _permission("SYSTEM", "CONFIGURE", "Configure system settings"),
    _permission("SYSTEM", "MONITOR", "Monitor system health"),
    _permission("SYSTEM", "BACKUP", "Perform system backups"),
    _permission("AUDIT", "READ", "View audit logs"),
    _permission("AUDIT", "EXPORT", "Export audit data"),
)

ROLES: Tuple[RoleDefinition, ...] = (
    RoleDefinition(SUPER_ADMIN, "System administrator with full access to all features"),
    RoleDefinition(FUND_MANAGER, "Fund management team with operational access to funds and investments"),
    RoleDefinition(INVESTOR, "Limited partner with read access to their own investments", is_default=True),
    RoleDefinition(COMPLIANCE_OFFICER, "Compliance and regulatory oversight with access to reports and audit trails"),
    RoleDefinition(ANALYST, "Read-only access for analysis and reporting across all funds"),
    RoleDefinition(VIEWER, "Minimum access for viewing basic information"),
)


def get_all_permission_names() -> List[str]:
    """Return every permission name in catalog order."""
    return [permission.name for permission in PERMISSIONS]


def get_fund_manager_permissions() -> List[str]:
    """Operational fund management."""
    return [
        "USER:READ",
        "USER:UPDATE",
        "ROLE:READ",
        "FUND:CREATE",
        "FUND:READ",
        "FUND:UPDATE",
        "FUND:MANAGE_PERFORMANCE",
        "INVESTMENT:CREATE",
        "INVESTMENT:READ",
        "INVESTMENT:UPDATE",
        "CAPITAL_CALL:CREATE",
        "CAPITAL_CALL:READ",
        "CAPITAL_CALL:UPDATE",
        "CAPITAL_CALL:PROCESS",
        "DISTRIBUTION:CREATE",
        "DISTRIBUTION:READ",
        "DISTRIBUTION:UPDATE",
        "DISTRIBUTION:PROCESS",
        "DOCUMENT:CREATE",
        "DOCUMENT:READ",
        "DOCUMENT:UPDATE",
        "DOCUMENT:READ_CONFIDENTIAL",
        "REPORT:GENERATE",
        "REPORT:VIEW_PERFORMANCE",
        "REPORT:EXPORT",
        "COMMUNICATION:CREATE",
        "COMMUNICATION:READ",
        "COMMUNICATION:UPDATE",
        "PORTFOLIO:READ",
        "PORTFOLIO:ANALYZE",
    ]


def get_investor_permissions() -> List[str]:
    """Limited partners see only their own investments and documents."""
    return [
        "INVESTMENT:READ_OWN",
        "CAPITAL_CALL:READ",
        "DISTRIBUTION:READ",
        "DOCUMENT:READ",
        "REPORT:VIEW_PERFORMANCE",
        "COMMUNICATION:READ",
        "PORTFOLIO:READ_OWN",
    ]


def get_compliance_officer_permissions() -> List[str]:
    return [
        "USER:READ",
        "ROLE:READ",
        "FUND:READ",
        "INVESTMENT:READ",
        "CAPITAL_CALL:READ",
        "DISTRIBUTION:READ",
        "DOCUMENT:READ",
        "DOCUMENT:READ_CONFIDENTIAL",
        "REPORT:GENERATE",
        "REPORT:VIEW_PERFORMANCE",
        "REPORT:VIEW_COMPLIANCE",
        "REPORT:EXPORT",
        "COMMUNICATION:READ",
        "PORTFOLIO:READ",
        "AUDIT:READ",
        "AUDIT:EXPORT",
    ]


def get_analyst_permissions() -> List[str]:
    return [
        "FUND:READ",
        "INVESTMENT:READ",
        "CAPITAL_CALL:READ",
        "DISTRIBUTION:READ",
        "DOCUMENT:READ",
        "REPORT:VIEW_PERFORMANCE",
        "REPORT:VIEW_COMPLIANCE",
        "REPORT:EXPORT",
        "COMMUNICATION:READ",
        "PORTFOLIO:READ",
        "PORTFOLIO:ANALYZE",
    ]


def get_viewer_permissions() -> List[str]:
    return [
        "FUND:READ",
        "COMMUNICATION:READ",
        "DOCUMENT:READ",
    ]


def get_role_permission_mapping() -> Dict[str, List[str]]:
    """Return the intended permission set of each catalog role."""
    # The super admin holds everything except the "own records only" grants.
    super_admin = [name for name in get_all_permission_names() if not name.endswith("_OWN")]
    return {
        SUPER_ADMIN: super_admin,
        FUND_MANAGER: get_fund_manager_permissions(),
        INVESTOR: get_investor_permissions(),
        COMPLIANCE_OFFICER: get_compliance_officer_permissions(),
        ANALYST: get_analyst_permissions(),
        VIEWER: get_viewer_permissions(),
    }
