"""Router registrations."""

from fastapi import APIRouter

from fundauth.api.routers import access, assignments, audit, health, permissions, roles, setup


def get_api_router() -> APIRouter:
    router = APIRouter()
    router.include_router(health.router, tags=["health"])
    router.include_router(roles.router, prefix="/api/v1/roles", tags=["roles"])
    router.include_router(permissions.router, prefix="/api/v1/permissions", tags=["permissions"])
    router.include_router(assignments.router, prefix="/api/v1/assignments", tags=["assignments"])
    router.include_router(access.router, prefix="/api/v1/access", tags=["access"])
    router.include_router(audit.router, prefix="/api/v1/audit", tags=["audit"])
    router.include_router(setup.router, prefix="/api/v1/setup", tags=["setup"])
    return router
