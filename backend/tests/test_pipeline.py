from pathlib import Path

from fastapi.testclient import TestClient

from nasa_mission_backend.core.config import Settings
from nasa_mission_backend.main import create_app


def test_static_file_is_served_verbatim(client: TestClient, public_dir: Path) -> None:
    response = client.get("/logo.bin")

    assert response.status_code == 200
    assert response.content == (public_dir / "logo.bin").read_bytes()


def test_static_content_type_is_inferred(client: TestClient) -> None:
    response = client.get("/assets/app.js")

    assert response.status_code == 200
    assert "javascript" in response.headers["content-type"]
    assert response.content == b"console.log('mission control');\n"


def test_static_file_skips_router(client: TestClient, router_calls: list[dict]) -> None:
    client.get("/assets/app.js")

    assert router_calls == []


def test_path_escaping_public_dir_falls_back_to_index(client: TestClient, index_html: bytes) -> None:
    response = client.get("/..%2F..%2Fetc%2Fpasswd")

    assert response.status_code == 200
    assert response.content == index_html


def test_api_paths_are_delegated_to_router(client: TestClient, router_calls: list[dict]) -> None:
    response = client.get("/v1/planets")

    assert response.status_code == 200
    assert response.json() == [{"keplerName": "Kepler-62 f"}]
    assert router_calls == [{"path": "/v1/planets"}]


def test_unknown_api_path_is_json_404_not_index(client: TestClient) -> None:
    response = client.get("/v1/missing")

    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found"}


def test_unknown_api_path_is_json_404_for_any_method(client: TestClient) -> None:
    posted = client.post("/v1/missing", json={})
    deleted = client.delete("/v1/missing")

    assert posted.status_code == 404
    assert posted.json() == {"detail": "Not Found"}
    assert deleted.status_code == 404
    assert deleted.json() == {"detail": "Not Found"}


def test_api_prefix_root_is_json_404(client: TestClient) -> None:
    response = client.put("/v1")

    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found"}


def test_deep_client_route_returns_index(client: TestClient, index_html: bytes) -> None:
    response = client.get("/dashboard/42")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert response.content == index_html


def test_root_returns_index(client: TestClient, index_html: bytes) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.content == index_html


def test_post_to_static_path_is_not_served_from_disk(client: TestClient) -> None:
    response = client.post("/assets/app.js")

    assert response.status_code == 405


def test_missing_index_reports_client_not_built(tmp_path: Path) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    client = TestClient(create_app(Settings(PUBLIC_DIR=empty)))

    response = client.get("/history")

    assert response.status_code == 404
    assert response.json()["code"] == "CLIENT_NOT_BUILT"


def test_missing_public_dir_does_not_break_api(tmp_path: Path) -> None:
    client = TestClient(create_app(Settings(PUBLIC_DIR=tmp_path / "nope")))

    response = client.get("/v1/health")

    assert response.status_code == 200


def test_unexpected_error_is_json_500(settings: Settings, stub_router) -> None:
    client = TestClient(create_app(settings, api_router=stub_router), raise_server_exceptions=False)

    response = client.get("/v1/explode")

    assert response.status_code == 500
    assert response.json()["code"] == "INTERNAL_ERROR"


def test_allowed_origin_gets_cors_headers(client: TestClient, allowed_origin: str) -> None:
    response = client.get("/v1/planets", headers={"Origin": allowed_origin})

    assert response.headers["access-control-allow-origin"] == allowed_origin


def test_other_origin_gets_no_cors_headers(client: TestClient) -> None:
    response = client.get("/v1/planets", headers={"Origin": "https://evil.example.com"})

    assert "access-control-allow-origin" not in response.headers


def test_preflight_from_allowed_origin(client: TestClient, allowed_origin: str) -> None:
    response = client.options(
        "/v1/launches",
        headers={
            "Origin": allowed_origin,
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == allowed_origin


def test_preflight_from_other_origin_is_refused(client: TestClient) -> None:
    response = client.options(
        "/v1/launches",
        headers={"Origin": "https://evil.example.com", "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == 400
    assert "access-control-allow-origin" not in response.headers


def test_client_origin_from_environment_drives_cors(
    monkeypatch, public_dir: Path, allowed_origin: str
) -> None:
    monkeypatch.setenv("CLIENT_ORIGIN", "http://localhost:3000")
    client = TestClient(create_app(Settings(PUBLIC_DIR=public_dir)))

    allowed = client.get("/v1/health", headers={"Origin": "http://localhost:3000"})
    default = client.get("/v1/health", headers={"Origin": allowed_origin})

    assert allowed.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert "access-control-allow-origin" not in default.headers
