"""Route requirement sets and the evaluator that enforces them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from fundauth.services.effective import ActorSnapshot, EffectiveAccessService
from fundauth.services.errors import ForbiddenError, UnauthenticatedError


class RequirementKind(str, Enum):
    ALL_ROLES = "all_roles"
    ANY_ROLE = "any_role"
    ALL_PERMISSIONS = "all_permissions"
    ANY_PERMISSION = "any_permission"


@dataclass(frozen=True)
class Actor:
    """Identity supplied by the authentication layer."""

    user_id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class RequirementSet:
    """Declared requirements of one route.

    The four kinds are ANDed; lists under ``all_*`` are ANDed and lists under
    ``any_*`` are ORed. Empty kinds are vacuously satisfied.
    """

    all_roles: Tuple[str, ...] = ()
    any_role: Tuple[str, ...] = ()
    all_permissions: Tuple[str, ...] = ()
    any_permission: Tuple[str, ...] = ()
    public: bool = False

    def __post_init__(self) -> None:
        for name in ("all_roles", "any_role", "all_permissions", "any_permission"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    @property
    def is_empty(self) -> bool:
        return not (self.all_roles or self.any_role or self.all_permissions or self.any_permission)

    def checks(self) -> List["RequirementCheck"]:
        """Present requirement kinds in evaluation order."""

        candidates = (
            RequirementCheck(RequirementKind.ALL_ROLES, self.all_roles),
            RequirementCheck(RequirementKind.ANY_ROLE, self.any_role),
            RequirementCheck(RequirementKind.ALL_PERMISSIONS, self.all_permissions),
            RequirementCheck(RequirementKind.ANY_PERMISSION, self.any_permission),
        )
        return [check for check in candidates if check.required]


@dataclass(frozen=True)
class RequirementCheck:
    kind: RequirementKind
    required: Tuple[str, ...]

    def passes(self, snapshot: ActorSnapshot) -> bool:
        if self.kind in (RequirementKind.ALL_ROLES, RequirementKind.ANY_ROLE):
            held = snapshot.roles
        else:
            held = snapshot.permissions
        if self.kind in (RequirementKind.ALL_ROLES, RequirementKind.ALL_PERMISSIONS):
            return all(value in held for value in self.required)
        return any(value in held for value in self.required)

    def describe(self) -> str:
        values = ", ".join(self.required)
        return {
            RequirementKind.ALL_ROLES: f"Missing required roles: {values}",
            RequirementKind.ANY_ROLE: f"Requires one of roles: {values}",
            RequirementKind.ALL_PERMISSIONS: f"Missing required permissions: {values}",
            RequirementKind.ANY_PERMISSION: f"Requires one of permissions: {values}",
        }[self.kind]


@dataclass
class AccessDecision:
    allowed: bool
    snapshot: Optional[ActorSnapshot] = None
    failures: List[RequirementCheck] = field(default_factory=list)


def requirements(
    *,
    all_roles: Iterable[str] = (),
    any_role: Iterable[str] = (),
    all_permissions: Iterable[str] = (),
    any_permission: Iterable[str] = (),
    public: bool = False,
) -> RequirementSet:
    return RequirementSet(
        all_roles=tuple(all_roles),
        any_role=tuple(any_role),
        all_permissions=tuple(all_permissions),
        any_permission=tuple(any_permission),
        public=public,
    )


class AccessEvaluator:
    """Turns a requirement set plus an actor into allow or a raised error."""

    def __init__(self, resolver: EffectiveAccessService) -> None:
        self._resolver = resolver
        self._logger = logging.getLogger("fundauth.services.access")

    def evaluate(self, requirement_set: RequirementSet, actor: Optional[Actor]) -> AccessDecision:
        if requirement_set.public:
            return AccessDecision(allowed=True)
        if actor is None:
            self._logger.info("access_unauthenticated")
            raise UnauthenticatedError("Authentication required")
        if requirement_set.is_empty:
            return AccessDecision(allowed=True)

        snapshot = self._load_snapshot(actor)
        failures = [check for check in requirement_set.checks() if not check.passes(snapshot)]
        if not failures:
            return AccessDecision(allowed=True, snapshot=snapshot)

        self._logger.warning(
            "access_denied",
            extra={
                "user_id": actor.user_id,
                "failed": [{"kind": check.kind.value, "required": list(check.required)} for check in failures],
                "actual_roles": sorted(snapshot.roles),
                "actual_permissions": sorted(snapshot.permissions),
            },
        )
        first = failures[0]
        raise ForbiddenError(
            first.describe(),
            kind=first.kind.value,
            required=first.required,
            actual_roles=snapshot.roles,
            actual_permissions=snapshot.permissions,
        )

    def _load_snapshot(self, actor: Actor) -> ActorSnapshot:
        try:
            return self._resolver.get_access_snapshot(actor.user_id)
        except (UnauthenticatedError, ForbiddenError):
            raise
        except Exception as exc:  # noqa: BLE001
            self._logger.exception("access_lookup_failed", extra={"user_id": actor.user_id})
            raise ForbiddenError("Error verifying user permissions", reason="lookup failed") from exc
