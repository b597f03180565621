"""FastAPI route definitions mounted under the API prefix."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from nasa_mission_backend.core.config import ServiceMetadata
from nasa_mission_backend.core.models import HealthResponse

router = APIRouter()


def get_service_metadata(request: Request) -> ServiceMetadata:
    return request.app.state.metadata


@router.get("/health", summary="Health check", response_model=HealthResponse)
async def health_check(service: ServiceMetadata = Depends(get_service_metadata)) -> HealthResponse:
    return HealthResponse(
        service=service.name,
        version=service.version,
        environment=service.environment,
    )
