"""Catch-all routes for paths no other router claimed."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import FileResponse

from nasa_mission_backend.core.config import Settings
from nasa_mission_backend.core.exceptions import ClientNotBuiltError

logger = logging.getLogger(__name__)

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def build_spa_router(settings: Settings) -> APIRouter:
    """Serve the client's entry document for every path the app does not own.

    Must be included after every other router: its path patterns match
    everything. Unknown API paths, whatever the method, end as JSON 404s so
    they never receive the client document.
    """
    router = APIRouter()
    index_path = settings.index_path

    @router.api_route(settings.API_PREFIX, methods=ALL_METHODS, include_in_schema=False)
    @router.api_route(f"{settings.API_PREFIX}/{{rest:path}}", methods=ALL_METHODS, include_in_schema=False)
    async def api_not_found() -> None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    @router.api_route("/{full_path:path}", methods=["GET", "HEAD"], include_in_schema=False)
    async def spa_fallback(full_path: str) -> FileResponse:
        if not index_path.is_file():
            logger.warning("Client entry document missing at %s", index_path)
            raise ClientNotBuiltError(index_path)
        return FileResponse(index_path, media_type="text/html")

    return router
