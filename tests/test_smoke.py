from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

from conftest import auth_headers


def test_root_endpoint_smoke(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    payload = response.json()

    assert payload.get("name") == "Paper Assistant API"
    assert payload.get("health") == "/health"


def test_health_endpoint_reports_database(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "ready": True}


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/", headers={"X-Request-Id": "abc-123"})
    assert response.headers.get("x-request-id") == "abc-123"

    generated = client.get("/").headers.get("x-request-id")
    assert generated and generated != "abc-123"


def test_unknown_route_uses_error_shape(client: TestClient):
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert "error" in response.json()


def test_unexpected_errors_are_sanitized(app, client: TestClient):
    route_path = f"/_test_exc_{uuid.uuid4().hex}"

    @app.get(route_path)
    async def _test_route_exception():
        raise RuntimeError("sensitive stack details")

    response = client.get(route_path)
    assert response.status_code == 500
    assert response.json() == {"error": "Server error"}


def test_register_login_key_search_history_flow(client: TestClient, upstream):
    email = f"flow_{uuid.uuid4().hex}@example.com"
    password = "StrongPass123"

    register_response = client.post("/api/auth/register", json={"email": email, "password": password})
    assert register_response.status_code == 200

    login_response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert login_response.status_code == 200
    token = login_response.json()["token"]
    headers = auth_headers(token)

    key_response = client.put("/api/user/api-key", headers=headers, json={"externalApiKey": "sk-or-flow"})
    assert key_response.status_code == 200

    search_response = client.post("/api/search", headers=headers, json={"query": "transformers"})
    assert search_response.status_code == 200
    papers = search_response.json()["papers"]
    assert 0 < len(papers) <= 3
    for paper in papers:
        assert paper["title"]
        assert paper["summary"]

    history = client.get("/api/queries", headers=headers).json()
    assert len(history) == 1
    record = history[0]
    assert record["query"] == "transformers"
    assert [r["title"] for r in record["results"]] == [p["title"] for p in papers]
    assert [r["summary"] for r in record["results"]] == [p["summary"] for p in papers]


def test_outbound_client_is_closed_on_shutdown(app, upstream):
    with TestClient(app) as test_client:
        assert test_client.get("/health").json()["ready"] is True
        http_client = app.state.http_client
        assert not http_client.is_closed

    assert http_client.is_closed
