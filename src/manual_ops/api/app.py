"""FastAPI application factory."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from manual_ops.api.businesses import router as businesses_router
from manual_ops.api.schemas import serialize_session
from manual_ops.api.work_sessions import router as work_sessions_router
from manual_ops.app_logging import configure_logging
from manual_ops.config import parse_log_level
from manual_ops.containers import AppContainer
from manual_ops.domain.errors import (
    Conflict,
    Forbidden,
    InvalidState,
    NotFound,
    Unauthenticated,
)

_ACCESS_DENIED = {"error": "Access denied"}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(parse_log_level(container.settings.log_level))
    logger = logging.getLogger(__name__)

    app = FastAPI()
    app.state.container = container

    app.include_router(businesses_router)
    app.include_router(work_sessions_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.exception_handler(Unauthenticated)
    async def unauthenticated_handler(
        request: Request, exc: Unauthenticated
    ) -> JSONResponse:
        logger.warning("Unauthenticated request to %s: %s", request.url.path, exc)
        return JSONResponse(_ACCESS_DENIED, status_code=status.HTTP_401_UNAUTHORIZED)

    @app.exception_handler(Forbidden)
    async def forbidden_handler(request: Request, exc: Forbidden) -> JSONResponse:
        logger.warning("Forbidden request to %s: %s", request.url.path, exc)
        return JSONResponse(_ACCESS_DENIED, status_code=status.HTTP_403_FORBIDDEN)

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
        logger.info("Not found on %s: %s", request.url.path, exc)
        return JSONResponse({"error": str(exc)}, status_code=status.HTTP_404_NOT_FOUND)

    @app.exception_handler(Conflict)
    async def conflict_handler(request: Request, exc: Conflict) -> JSONResponse:
        logger.info("Conflict on %s: %s", request.url.path, exc)
        body: dict[str, object] = {"error": str(exc)}
        if exc.existing is not None:
            body["work_session"] = serialize_session(exc.existing)
        return JSONResponse(body, status_code=status.HTTP_409_CONFLICT)

    @app.exception_handler(InvalidState)
    async def invalid_state_handler(
        request: Request, exc: InvalidState
    ) -> JSONResponse:
        logger.info("Invalid state on %s: %s", request.url.path, exc)
        return JSONResponse(
            {"error": str(exc)}, status_code=status.HTTP_400_BAD_REQUEST
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        logger.info("Rejected input on %s: %s", request.url.path, exc)
        return JSONResponse(
            {"error": str(exc)}, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY
        )

    return app
