"""Data models for the Mission Control entry point."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class AccessRecord(BaseModel):
    """What the access log knows about one finished request."""

    remote_addr: Optional[str] = None
    method: str
    url: str = Field(description="Path including the query string, as requested")
    http_version: str = "1.1"
    status: Optional[int] = None
    content_length: Optional[int] = None
    referrer: Optional[str] = None
    user_agent: Optional[str] = None
    response_time_ms: float = 0.0
    finished_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class HealthResponse(BaseModel):
    """Payload of the API health check."""

    service: str
    version: str
    environment: str
    status: str = "ok"
