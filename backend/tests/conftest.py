import logging
from pathlib import Path

import pytest
from fastapi import APIRouter, Request
from fastapi.testclient import TestClient

from nasa_mission_backend.core.config import Settings
from nasa_mission_backend.core.logging import ACCESS_LOGGER_NAME
from nasa_mission_backend.main import create_app

ALLOWED_ORIGIN = "https://nasa-mission-kartikey.netlify.app"
INDEX_HTML = b"<!DOCTYPE html><html><body><div id=\"root\"></div></body></html>\n"


class _LineCollector(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.lines: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.lines.append(record.getMessage())


@pytest.fixture
def allowed_origin() -> str:
    return ALLOWED_ORIGIN


@pytest.fixture
def index_html() -> bytes:
    return INDEX_HTML


@pytest.fixture
def public_dir(tmp_path: Path) -> Path:
    public = tmp_path / "public"
    (public / "assets").mkdir(parents=True)
    (public / "index.html").write_bytes(INDEX_HTML)
    (public / "assets" / "app.js").write_bytes(b"console.log('mission control');\n")
    (public / "logo.bin").write_bytes(bytes(range(256)))
    # Must never be served: /v1 belongs to the API router.
    (public / "v1").mkdir()
    (public / "v1" / "planets").write_text("static shadow")
    return public


@pytest.fixture
def settings(public_dir: Path) -> Settings:
    return Settings(PUBLIC_DIR=public_dir, CLIENT_ORIGIN=ALLOWED_ORIGIN, API_PREFIX="/v1")


@pytest.fixture
def router_calls() -> list[dict]:
    return []


@pytest.fixture
def stub_router(router_calls: list[dict]) -> APIRouter:
    router = APIRouter()

    @router.get("/planets")
    async def planets(request: Request) -> list[dict[str, str]]:
        router_calls.append({"path": request.url.path})
        return [{"keplerName": "Kepler-62 f"}]

    @router.post("/launches")
    async def add_launch(request: Request) -> dict:
        body = await request.json()
        router_calls.append({"path": request.url.path, "state": request.state.json, "body": body})
        return {"received": body}

    @router.get("/explode")
    async def explode() -> None:
        raise RuntimeError("launch aborted")

    return router


@pytest.fixture
def client(settings: Settings, stub_router: APIRouter) -> TestClient:
    return TestClient(create_app(settings, api_router=stub_router))


@pytest.fixture
def access_lines() -> list[str]:
    handler = _LineCollector()
    logger = logging.getLogger(ACCESS_LOGGER_NAME)
    logger.addHandler(handler)
    yield handler.lines
    logger.removeHandler(handler)
