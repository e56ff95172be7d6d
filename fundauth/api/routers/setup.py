"""Setup and initialization API endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from fundauth.api.dependencies import Authorize, get_bootstrap_service
from fundauth.api.requirements import ADMIN_ONLY
from fundauth.schemas.setup import BootstrapResponse
from fundauth.services.access import Actor
from fundauth.services.bootstrap import BootstrapService

router = APIRouter()
logger = logging.getLogger("fundauth.api.setup")


@router.post(
    "/bootstrap",
    response_model=BootstrapResponse,
    status_code=status.HTTP_200_OK,
)
def bootstrap_rbac(
    service: BootstrapService = Depends(get_bootstrap_service),
    actor: Actor = Depends(Authorize(ADMIN_ONLY)),
) -> BootstrapResponse:
    """Create any missing catalog permissions and roles and link them.

    Safe to repeat: a second run reports zero creations and zero new
    assignments.
    """

    logger.info("bootstrap_requested", extra={"actor_id": actor.user_id})
    result = service.run(actor_id=actor.user_id)
    created = result.permissions_created + result.roles_created + result.role_permissions_assigned
    message = "RBAC catalog initialized" if created else "RBAC catalog already up to date"
    return BootstrapResponse(**result.as_dict(), message=message)
