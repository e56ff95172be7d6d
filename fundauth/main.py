"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from fundauth.api.error_handlers import register_exception_handlers
from fundauth.api.routers import get_api_router
from fundauth.core.config import AppSettings, get_settings
from fundauth.core.database import session_scope
from fundauth.core.logging import configure_logging
from fundauth.services.bootstrap import BootstrapService

logger = logging.getLogger("fundauth.main")


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: D401
    """Application lifespan context for startup/shutdown hooks."""

    settings = get_settings()
    if settings.seed_on_startup:
        with session_scope() as session:
            result = BootstrapService(session, settings=settings).run(actor_id=settings.system_actor_id)
            logger.info("startup_seed_completed", extra=result.as_dict())

    yield


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Application factory."""

    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Fund Authorization Core",
        version="1.0.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app)
    app.include_router(get_api_router())
    return app


app = create_app()
