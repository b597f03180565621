"""FastAPI application entry point."""

from __future__ import annotations

import logging
from typing import Optional

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware import Middleware

from nasa_mission_backend.api.routes import router as default_api_router
from nasa_mission_backend.api.spa import build_spa_router
from nasa_mission_backend.core.config import Settings, get_settings, metadata
from nasa_mission_backend.core.exceptions import MissionControlError, mission_control_exception_handler
from nasa_mission_backend.core.logging import configure_logging
from nasa_mission_backend.core.middleware import (
    AccessLogMiddleware,
    JSONBodyMiddleware,
    StaticFilesMiddleware,
)

logger = logging.getLogger(__name__)


async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred", "code": "INTERNAL_ERROR"},
    )


def create_app(
    settings: Optional[Settings] = None,
    api_router: Optional[APIRouter] = None,
) -> FastAPI:
    """Build the request pipeline.

    Middleware runs in list order: access log, CORS, JSON body parsing, static
    files. Requests that get through all four reach the API router under
    ``settings.API_PREFIX`` or, failing that, the client application's entry
    document.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="NASA Mission Control API",
        description="Serves the Mission Control client and its versioned API.",
        version=metadata.version,
        docs_url=f"{settings.API_PREFIX}/docs",
        redoc_url=None,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        middleware=[
            Middleware(AccessLogMiddleware, fmt=settings.ACCESS_LOG_FORMAT),
            Middleware(
                CORSMiddleware,
                allow_origins=settings.cors_origins_list,
                allow_methods=["*"],
                allow_headers=["*"],
            ),
            Middleware(JSONBodyMiddleware, limit=settings.JSON_BODY_LIMIT, strict=settings.JSON_STRICT),
            Middleware(StaticFilesMiddleware, directory=settings.PUBLIC_DIR, api_prefix=settings.API_PREFIX),
        ],
    )
    app.state.metadata = metadata.model_copy(update={"environment": settings.ENVIRONMENT})

    app.add_exception_handler(MissionControlError, mission_control_exception_handler)
    app.add_exception_handler(Exception, handle_unexpected_exception)

    app.include_router(api_router or default_api_router, prefix=settings.API_PREFIX)
    app.include_router(build_spa_router(settings))

    logger.info("CORS origin: %s", settings.CLIENT_ORIGIN)
    logger.info("Serving client from %s", settings.PUBLIC_DIR)
    return app


app = create_app()


def run() -> None:
    """Serve ``app`` with uvicorn; the pipeline writes its own access log."""
    settings = get_settings()
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, access_log=False)


if __name__ == "__main__":
    run()
