from __future__ import annotations


def test_request_id_is_generated_and_returned(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "running"
    assert r.headers["X-Request-Id"]


def test_request_id_is_propagated_from_client(client):
    r = client.get("/api/health", headers={"X-Request-Id": "abc-123"})
    assert r.status_code == 200
    assert r.headers.get("X-Request-Id") == "abc-123"


def test_validation_errors_are_problem_json(client):
    r = client.post("/api/auth/register", json={"email": "x@portal.io"})
    assert r.status_code == 422
    assert r.headers.get("content-type", "").startswith("application/problem+json")
    body = r.json()
    assert body["title"] == "Validation Failed"
    assert body["status"] == 422
    paths = {e["path"] for e in body["errors"]}
    assert {"name", "password", "role"} <= paths
    assert body.get("requestId")


def test_404_is_problem_json(client):
    r = client.get("/this-route-does-not-exist", headers={"X-Request-Id": "rid-404"})
    assert r.status_code == 404
    assert r.headers.get("content-type", "").startswith("application/problem+json")
    body = r.json()
    assert body["status"] == 404
    assert body["detail"] == "Route not found"
    assert body["instance"] == "/this-route-does-not-exist"
    assert body["requestId"] == "rid-404"


def test_auth_denied_is_problem_json(client):
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.headers.get("content-type", "").startswith("application/problem+json")
    body = r.json()
    assert body["status"] == 401
    assert body["title"] == "Unauthorized"
    assert body.get("requestId")


def test_domain_errors_keep_their_message(portal, client):
    _, gcc = portal.approved("GCC")
    r = client.get("/api/gcc/requirements/req_nope", headers=gcc)
    assert r.status_code == 404
    assert r.json()["title"] == "Not Found"
    assert r.json()["detail"] == "Requirement not found"


def test_cors_preflight_allows_local_frontend(client):
    r = client.options(
        "/api/requirements",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert r.status_code == 200
    assert r.headers.get("access-control-allow-origin") == "http://localhost:3000"
