"""Business logic service layer."""

from fundauth.services.access import AccessEvaluator  # noqa: F401
from fundauth.services.assignments import AssignmentService  # noqa: F401
from fundauth.services.bootstrap import BootstrapService  # noqa: F401
from fundauth.services.effective import EffectiveAccessService  # noqa: F401
from fundauth.services.permissions import PermissionService  # noqa: F401
from fundauth.services.roles import RoleService  # noqa: F401
