from __future__ import annotations

from fastapi.testclient import TestClient

from gcc_portal.main import create_app
from gcc_portal.middleware.login_rate_limit import LoginRateLimitMiddleware


def _client(settings, rpm: int, **overrides) -> TestClient:
    return TestClient(
        create_app(settings.model_copy(update={"login_rate_limit_rpm": rpm, **overrides}))
    )


async def _noop_app(scope, receive, send):
    return None


BODY = {"email": "nobody@portal.io", "password": "wrong"}


def test_login_attempts_are_throttled_per_ip(table, settings):
    client = _client(settings, rpm=2)

    assert client.post("/api/auth/login", json=BODY).status_code == 401
    assert client.post("/api/auth/login", json=BODY).status_code == 401

    r = client.post("/api/auth/login", json=BODY)
    assert r.status_code == 429
    assert r.headers.get("content-type", "").startswith("application/problem+json")
    assert 1 <= int(r.headers["Retry-After"]) <= 60
    assert r.json()["title"] == "Too Many Requests"


def test_forwarded_for_is_ignored_without_trusted_proxies(table, settings):
    client = _client(settings, rpm=2)
    for i in range(2):
        hdrs = {"X-Forwarded-For": f"10.0.0.{i}"}
        assert client.post("/api/auth/login", json=BODY, headers=hdrs).status_code == 401

    # A fresh spoofed address does not open a new window.
    r = client.post("/api/auth/login", json=BODY, headers={"X-Forwarded-For": "10.0.0.99"})
    assert r.status_code == 429


def test_trusted_proxy_hop_keys_the_window(table, settings):
    client = _client(settings, rpm=1, trusted_proxy_count=1)

    first = {"X-Forwarded-For": "203.0.113.7"}
    assert client.post("/api/auth/login", json=BODY, headers=first).status_code == 401
    assert client.post("/api/auth/login", json=BODY, headers=first).status_code == 429

    # Left-hand hops are client supplied; only the proxy-appended one counts.
    spoofed = {"X-Forwarded-For": "1.2.3.4, 203.0.113.7"}
    assert client.post("/api/auth/login", json=BODY, headers=spoofed).status_code == 429

    other = {"X-Forwarded-For": "198.51.100.2"}
    assert client.post("/api/auth/login", json=BODY, headers=other).status_code == 401


def test_expired_windows_are_pruned():
    mw = LoginRateLimitMiddleware(_noop_app, rpm=1)
    for i in range(100):
        assert mw._hit(f"10.0.{i // 256}.{i % 256}", now=1000.0) is None
    assert len(mw._buckets) == 100

    assert mw._hit("10.9.9.9", now=1061.0) is None
    assert list(mw._buckets) == ["10.9.9.9"]

    # A live window keeps its count.
    assert mw._hit("10.9.9.9", now=1062.0) is not None


def test_other_routes_are_not_throttled(table, settings):
    client = _client(settings, rpm=1)
    for _ in range(3):
        assert client.get("/api/requirements").status_code == 200
