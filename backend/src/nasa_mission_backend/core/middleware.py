"""ASGI middleware making up the request pipeline.

Each class is plain ASGI so file responses keep streaming. The app builds
them, outermost first, as:

    AccessLogMiddleware -> CORSMiddleware -> JSONBodyMiddleware -> StaticFilesMiddleware
"""

from __future__ import annotations

import codecs
import json
import logging
import time
from os import PathLike
from typing import Any

from starlette.datastructures import Headers
from starlette.exceptions import HTTPException
from starlette.responses import PlainTextResponse
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from nasa_mission_backend.core.exceptions import (
    InvalidJSONBodyError,
    MissionControlError,
    PayloadTooLargeError,
    UnsupportedCharsetError,
)
from nasa_mission_backend.core.logging import access_logger, format_access_line
from nasa_mission_backend.core.models import AccessRecord

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    raise InvalidJSONBodyError(f"{name} is not a JSON value")


def _request_url(scope: Scope) -> str:
    path = scope.get("raw_path") or scope["path"].encode()
    url = path.split(b"?", 1)[0].decode("latin-1")
    if scope.get("query_string"):
        url += "?" + scope["query_string"].decode("latin-1")
    return url


class AccessLogMiddleware:
    """Emit one access-log line per HTTP request once the response is done."""

    def __init__(self, app: ASGIApp, fmt: str = "combined") -> None:
        self.app = app
        self.fmt = fmt

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        status: int | None = None
        declared_length: int | None = None
        sent_bytes = 0

        async def send_wrapper(message: Message) -> None:
            nonlocal status, declared_length, sent_bytes
            if message["type"] == "http.response.start":
                status = message["status"]
                length = Headers(raw=message.get("headers", [])).get("content-length")
                if length is not None and length.isdigit():
                    declared_length = int(length)
            elif message["type"] == "http.response.body":
                sent_bytes += len(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            # The server error handler answers outside this middleware.
            if status is None:
                status = 500
            raise
        finally:
            headers = Headers(scope=scope)
            client = scope.get("client")
            record = AccessRecord(
                remote_addr=client[0] if client else None,
                method=scope["method"],
                url=_request_url(scope),
                http_version=scope.get("http_version", "1.1"),
                status=status,
                content_length=declared_length if declared_length is not None else (sent_bytes or None),
                referrer=headers.get("referer") or headers.get("referrer"),
                user_agent=headers.get("user-agent"),
                response_time_ms=(time.perf_counter() - started) * 1000,
            )
            access_logger.info(format_access_line(self.fmt, record))


def _parse_content_type(value: str) -> tuple[str, dict[str, str]]:
    media_type, _, raw_params = value.partition(";")
    params: dict[str, str] = {}
    for item in raw_params.split(";"):
        key, sep, param = item.partition("=")
        if sep:
            params[key.strip().lower()] = param.strip().strip('"')
    return media_type.strip().lower(), params


class JSONBodyMiddleware:
    """Parse ``application/json`` request bodies before anything else sees them.

    The parsed value is stored at ``request.state.json`` and the raw bytes are
    replayed downstream, so FastAPI body parameters keep working. A body that
    cannot be accepted ends the request here with a 4xx response.
    """

    def __init__(self, app: ASGIApp, limit: int = 100 * 1024, strict: bool = True) -> None:
        self.app = app
        self.limit = limit
        self.strict = strict

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        media_type, params = _parse_content_type(headers.get("content-type", ""))
        if media_type != "application/json":
            await self.app(scope, receive, send)
            return

        try:
            charset = self._charset(params)
            body = await self._read_body(headers, receive)
            parsed = self._parse(body, charset)
        except MissionControlError as exc:
            logger.warning("Rejected %s %s: %s", scope["method"], scope["path"], exc.message)
            await exc.to_response()(scope, receive, send)
            return

        scope.setdefault("state", {})["json"] = parsed

        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)

    @staticmethod
    def _charset(params: dict[str, str]) -> str:
        """Return the Python codec for the declared charset; only ``utf-*`` is accepted."""
        charset = params.get("charset", "utf-8").lower()
        if not charset.startswith("utf-"):
            raise UnsupportedCharsetError(charset)
        try:
            codec = codecs.lookup(charset).name
        except LookupError as exc:
            raise UnsupportedCharsetError(charset) from exc
        # A leading byte order mark is not part of the document.
        return "utf-8-sig" if codec == "utf-8" else codec

    async def _read_body(self, headers: Headers, receive: Receive) -> bytes:
        declared = headers.get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.limit:
            raise PayloadTooLargeError(self.limit)

        chunks: list[bytes] = []
        received = 0
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                break
            chunk = message.get("body", b"")
            received += len(chunk)
            if received > self.limit:
                raise PayloadTooLargeError(self.limit)
            chunks.append(chunk)
            if not message.get("more_body", False):
                break
        return b"".join(chunks)

    def _parse(self, body: bytes, charset: str = "utf-8-sig") -> Any:
        try:
            text = body.decode(charset)
        except UnicodeDecodeError as exc:
            raise InvalidJSONBodyError(f"body is not valid {charset.removesuffix('-sig').upper()}") from exc
        if not text.strip():
            return {}
        try:
            parsed = json.loads(text, parse_constant=_reject_constant)
        except json.JSONDecodeError as exc:
            raise InvalidJSONBodyError(exc.msg) from exc
        if self.strict and not isinstance(parsed, (dict, list)):
            raise InvalidJSONBodyError("top-level value must be an object or an array")
        return parsed


class StaticFilesMiddleware:
    """Answer GET/HEAD requests that name a file under ``directory``.

    Anything that is not such a file falls through to the rest of the app.
    Paths under ``api_prefix`` are left to the API router.
    """

    def __init__(self, app: ASGIApp, directory: str | PathLike[str], api_prefix: str = "/v1") -> None:
        self.app = app
        self.api_prefix = api_prefix
        self.files = StaticFiles(directory=directory, check_dir=False)

    def _is_api_path(self, path: str) -> bool:
        return path == self.api_prefix or path.startswith(self.api_prefix + "/")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if (
            scope["type"] != "http"
            or scope["method"] not in ("GET", "HEAD")
            or self._is_api_path(scope["path"])
        ):
            await self.app(scope, receive, send)
            return

        try:
            response = await self.files.get_response(self.files.get_path(scope), scope)
        except HTTPException as exc:
            if exc.status_code in (404, 405):
                await self.app(scope, receive, send)
                return
            response = PlainTextResponse(exc.detail, status_code=exc.status_code)
        await response(scope, receive, send)
