"""Actor identity resolution.

Credentials are validated upstream; by default the gateway forwards the
authenticated user through trusted headers.
"""

from __future__ import annotations

from typing import Optional, Protocol

from fastapi import Request

from fundauth.core.config import get_settings
from fundauth.services.access import Actor


class IdentityResolver(Protocol):
    def __call__(self, request: Request) -> Optional[Actor]:
        ...


class HeaderIdentityResolver:
    """Reads the actor id and email from the configured request headers."""

    def __call__(self, request: Request) -> Optional[Actor]:
        settings = get_settings()
        user_id = (request.headers.get(settings.actor_header) or "").strip()
        if not user_id:
            return None
        email = (request.headers.get(settings.actor_email_header) or "").strip() or None
        return Actor(user_id=user_id, email=email)


_resolver: IdentityResolver = HeaderIdentityResolver()


def get_identity_resolver() -> IdentityResolver:
    return _resolver


def set_identity_resolver(resolver: Optional[IdentityResolver]) -> None:
    """Swap the resolver; ``None`` restores the header-based default."""

    global _resolver
    _resolver = resolver or HeaderIdentityResolver()


def resolve_actor(request: Request) -> Optional[Actor]:
    return get_identity_resolver()(request)
