"""Application configuration and settings.

Values are read once from the process environment (or a local ``.env`` file)
through pydantic-settings. A value that does not validate never stops the
server from starting: it is logged and the field's default is used instead.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# backend/ holds both src/ and the built client under public/
BACKEND_ROOT = Path(__file__).resolve().parents[3]

DEFAULT_CLIENT_ORIGIN = "https://nasa-mission-kartikey.netlify.app"


class ServiceMetadata(BaseModel):
    """Identifies the running service instance."""

    name: str = "nasa-mission-backend"
    version: str = "0.1.0"
    environment: str = "development"


class Settings(BaseSettings):
    """Process-wide configuration, immutable after startup."""

    # -------------------------------------------------------------------------
    # HTTP surface
    # -------------------------------------------------------------------------

    CLIENT_ORIGIN: str = Field(
        default=DEFAULT_CLIENT_ORIGIN,
        description="The only origin allowed to read responses cross-origin",
    )

    PUBLIC_DIR: Path = Field(
        default=BACKEND_ROOT / "public",
        description="Directory of the built client application and its assets",
    )

    INDEX_FILE: str = Field(
        default="index.html",
        description="Entry document of the client application, inside PUBLIC_DIR",
    )

    API_PREFIX: str = Field(
        default="/v1",
        description="Mount point of the API router",
    )

    # -------------------------------------------------------------------------
    # JSON bodies
    # -------------------------------------------------------------------------

    JSON_BODY_LIMIT: int = Field(
        default=100 * 1024,
        ge=1,
        description="Largest accepted JSON request body, in bytes",
    )

    JSON_STRICT: bool = Field(
        default=True,
        description="Only accept objects and arrays as top-level JSON values",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------

    ACCESS_LOG_FORMAT: Literal["combined", "common", "dev"] = Field(
        default="combined",
        description="Layout of the per-request access log line",
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Level of the application loggers",
    )

    # -------------------------------------------------------------------------
    # Process
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment",
    )

    HOST: str = Field(default="0.0.0.0", description="Interface the server binds to")

    PORT: int = Field(default=8000, ge=1, le=65535, description="Port the server listens on")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("CLIENT_ORIGIN")
    @classmethod
    def _normalize_origin(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        scheme, sep, host = value.partition("://")
        if not sep or scheme not in ("http", "https") or not host or "/" in host:
            raise ValueError(f"'{value}' is not an http(s) origin")
        return value

    @field_validator("API_PREFIX")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        value = "/" + value.strip().strip("/")
        if value == "/":
            raise ValueError("API_PREFIX cannot be the site root")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.strip().upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"Unknown log level '{value}'")
        return value

    # Declared last so it wraps the field validators above.
    @field_validator("*", mode="wrap")
    @classmethod
    def _default_on_invalid(
        cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> Any:
        try:
            return handler(value)
        except ValidationError as exc:
            default = cls.model_fields[info.field_name].default
            logger.warning(
                "Ignoring invalid %s=%r (%s); using default %r",
                info.field_name,
                value,
                exc.errors()[0]["msg"],
                default,
            )
            return default

    @property
    def index_path(self) -> Path:
        return self.PUBLIC_DIR / self.INDEX_FILE

    @property
    def cors_origins_list(self) -> list[str]:
        return [self.CLIENT_ORIGIN]


@lru_cache
def get_settings() -> Settings:
    """Build the settings once per process."""
    return Settings()


metadata = ServiceMetadata()
