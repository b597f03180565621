"""Structured errors raised by the request pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class MissionControlError(Exception):
    """Base exception rendered as ``{"detail", "code"}`` JSON."""

    def __init__(self, message: str, code: str = "MISSION_CONTROL_ERROR", status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code}

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.to_dict())


class InvalidJSONBodyError(MissionControlError):
    """Raised when a JSON request body cannot be parsed."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Malformed JSON request body: {reason}",
            code="INVALID_JSON",
            status_code=400,
        )


class PayloadTooLargeError(MissionControlError):
    """Raised when a JSON request body exceeds the configured limit."""

    def __init__(self, limit: int):
        super().__init__(
            message=f"Request body exceeds the {limit} byte limit",
            code="PAYLOAD_TOO_LARGE",
            status_code=413,
        )


class UnsupportedCharsetError(MissionControlError):
    """Raised when a JSON request body declares a charset other than UTF-8."""

    def __init__(self, charset: str):
        super().__init__(
            message=f"Unsupported charset \"{charset.upper()}\"",
            code="UNSUPPORTED_CHARSET",
            status_code=415,
        )


class ClientNotBuiltError(MissionControlError):
    """Raised when the client application's entry document is missing."""

    def __init__(self, index_path: Path):
        super().__init__(
            message=f"Client application entry document not found: {index_path.name}",
            code="CLIENT_NOT_BUILT",
            status_code=404,
        )


async def mission_control_exception_handler(request: Request, exc: MissionControlError) -> JSONResponse:
    return exc.to_response()
