"""Error taxonomy shared by the stores, the assignment engine and the guard."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple


class AuthzError(Exception):
    """Base class for authorization core errors.

    ``reason`` is a short machine-friendly string; bulk operations record it
    as the per-item failure text.
    """

    default_reason = "error"

    def __init__(self, message: str, *, reason: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason or self.default_reason


class NotFoundError(AuthzError):
    default_reason = "not found"


class ConflictError(AuthzError):
    default_reason = "conflict"


class BadRequestError(AuthzError):
    default_reason = "bad request"


class UnauthenticatedError(AuthzError):
    default_reason = "unauthenticated"


class ForbiddenError(AuthzError):
    """Raised when an actor fails a route's requirements."""

    default_reason = "forbidden"

    def __init__(
        self,
        message: str,
        *,
        kind: Optional[str] = None,
        required: Iterable[str] = (),
        actual_roles: Iterable[str] = (),
        actual_permissions: Iterable[str] = (),
        reason: Optional[str] = None,
    ) -> None:
        super().__init__(message, reason=reason)
        self.kind = kind
        self.required: Tuple[str, ...] = tuple(required)
        self.actual_roles: Tuple[str, ...] = tuple(sorted(actual_roles))
        self.actual_permissions: Tuple[str, ...] = tuple(sorted(actual_permissions))


class RoleNotFoundError(NotFoundError):
    default_reason = "role not found"


class PermissionNotFoundError(NotFoundError):
    default_reason = "permission not found"


class AssignmentNotFoundError(NotFoundError):
    default_reason = "assignment not found"


class RoleConflictError(ConflictError):
    default_reason = "role already exists"


class PermissionConflictError(ConflictError):
    default_reason = "permission already exists"


class AssignmentConflictError(ConflictError):
    default_reason = "already assigned"
