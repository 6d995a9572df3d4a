from fastapi.testclient import TestClient

from coin_exchange.main import RateLimitMiddleware, app


client = TestClient(app)


def test_home_lists_portals():
    resp = client.get("/")
    assert resp.status_code == 200
    assert "Coin Exchange API is running" in resp.text
    assert resp.json()["portals"] == {"field": "/app", "admin": "/admin/login"}


def test_field_app_entry_redirects_to_login():
    resp = client.get("/app", follow_redirects=False)
    assert resp.status_code == 307
    assert resp.headers["location"] == "/app/login"


def test_admin_entry_redirects_to_login():
    resp = client.get("/admin", follow_redirects=False)
    assert resp.status_code == 307
    assert resp.headers["location"] == "/admin/login"


def test_unknown_api_route_is_404():
    assert client.get("/api/documents").status_code == 404


def test_rate_limit_forgets_expired_windows(monkeypatch):
    monkeypatch.setattr(RateLimitMiddleware, "_store", {
        ("10.0.0.1", "/api/users/login"): (3, 1000),
        ("10.0.0.2", "/api/users/login"): (1, 1050),
    })
    limiter = RateLimitMiddleware(app, limit=5, window_seconds=60)
    limiter._evict(1070)
    assert list(limiter._store) == [("10.0.0.2", "/api/users/login")]
