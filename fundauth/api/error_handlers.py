"""Exception handlers for the FastAPI app."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fundauth.services.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
)

logger = logging.getLogger("fundauth.api.errors")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=404, content={"detail": exc.message})

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=409, content={"detail": exc.message})

    @app.exception_handler(BadRequestError)
    async def bad_request_handler(request: Request, exc: BadRequestError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=400, content={"detail": exc.message})

    @app.exception_handler(UnauthenticatedError)
    async def unauthenticated_handler(request: Request, exc: UnauthenticatedError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(
            status_code=401,
            content={"detail": exc.message},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(ForbiddenError)
    async def forbidden_handler(request: Request, exc: ForbiddenError) -> JSONResponse:  # noqa: WPS430
        logger.info(
            "request_forbidden",
            extra={"path": request.url.path, "kind": exc.kind, "required": list(exc.required)},
        )
        return JSONResponse(status_code=403, content={"detail": exc.message})
