from portfolio_api.main import _first_values, create_app, seed_admin
from portfolio_api.services.rate_limit import FixedWindowRateLimiter
from portfolio_api.services.users import user_store


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "OK", "message": "Server is running"}


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Not Found"}


def test_unhandled_error_is_500_without_internals(app, client):
    @app.get("/api/explode")
    def explode():
        raise RuntimeError("database password is hunter2")

    response = client.get("/api/explode")

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Server error"}
    assert "hunter2" not in response.text


def test_general_rate_limit_applies_to_api_routes(app, client):
    app.state.api_limiter = FixedWindowRateLimiter(
        max_hits=3,
        window_seconds=900,
        message="Too many requests from this IP, please try again later.",
    )

    statuses = [client.get("/api/health").status_code for _ in range(4)]

    assert statuses == [200, 200, 200, 429]
    response = client.post("/api/auth/login", json={})
    assert response.status_code == 429
    assert response.json() == {
        "success": False,
        "message": "Too many requests from this IP, please try again later.",
    }


def test_each_app_owns_its_limiters():
    first = create_app()
    second = create_app()

    assert first.state.api_limiter is not second.state.api_limiter
    assert first.state.login_limiter is not second.state.login_limiter
    assert first.state.ip_access is not second.state.ip_access


def test_blocked_ip_is_denied_before_anything_else(app, client, admin_user):
    app.state.ip_access.block("testclient")

    for response in (
        client.get("/api/health"),
        client.post("/api/auth/login", json={"email": "a@b.com", "password": "x"}),
        client.get("/api/nothing-here"),
    ):
        assert response.status_code == 403
        assert response.json() == {"success": False, "message": "Access denied"}
    assert app.state.login_limiter.remaining("testclient") == 5

    app.state.ip_access.unblock("testclient")
    assert client.get("/api/health").status_code == 200


def test_repeated_query_parameters_keep_first_value(app, client):
    @app.get("/api/echo")
    def echo(tag: str):
        return {"tag": tag}

    response = client.get("/api/echo?tag=first&tag=second&other=1")

    assert response.json() == {"tag": "first"}


def test_first_values_collapses_duplicates():
    assert _first_values(b"a=1&a=2&b=3&c=") == b"a=1&b=3&c="


def test_cors_allows_configured_origin(client):
    response = client.options(
        "/api/auth/login",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert response.headers["access-control-allow-credentials"] == "true"


def test_seed_admin_creates_admin_once(monkeypatch):
    from dataclasses import replace

    from portfolio_api import main as main_module
    from portfolio_api.config import settings

    monkeypatch.setattr(
        main_module,
        "settings",
        replace(
            settings,
            seed_email="owner@example.com",
            seed_password="owner-pass-1",
            seed_name="Owner",
        ),
    )

    seed_admin()
    seed_admin()

    users = user_store.list_users()
    assert [(u.email, u.role) for u in users] == [("owner@example.com", "admin")]


def test_seed_admin_is_noop_without_credentials():
    seed_admin()

    assert user_store.list_users() == []


def _small_api_limiter(max_hits=2):
    return FixedWindowRateLimiter(
        max_hits=max_hits,
        window_seconds=900,
        message="Too many requests from this IP, please try again later.",
    )


def test_general_rate_limit_counts_unmatched_api_paths(app, client):
    app.state.api_limiter = _small_api_limiter()

    statuses = [client.get("/api/services").status_code for _ in range(3)]

    assert statuses == [404, 404, 429]
    assert client.get("/api/health").status_code == 429


def test_general_rate_limit_counts_malformed_bodies(app, client):
    app.state.api_limiter = _small_api_limiter()

    statuses = [
        client.post(
            "/api/auth/login",
            content="{not json",
            headers={"Content-Type": "application/json"},
        ).status_code
        for _ in range(3)
    ]

    assert statuses == [400, 400, 429]


def test_general_rate_limit_response_carries_retry_after(app, client):
    app.state.api_limiter = _small_api_limiter(max_hits=1)
    client.get("/api/health")

    response = client.get("/api/health")

    assert response.status_code == 429
    assert 0 < int(response.headers["retry-after"]) <= 900


def test_paths_outside_api_are_not_rate_limited(app, client):
    app.state.api_limiter = _small_api_limiter(max_hits=1)

    for _ in range(3):
        client.get("/not-api")

    assert app.state.api_limiter.remaining("testclient") == 1


def _assert_security_headers(response):
    csp = response.headers["content-security-policy"]
    assert "default-src 'self'" in csp
    assert "img-src 'self' data: https:" in csp
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "SAMEORIGIN"
    assert response.headers["referrer-policy"] == "no-referrer"
    assert response.headers["cross-origin-resource-policy"] == "cross-origin"


def test_security_headers_on_success_and_error_responses(app, client):
    _assert_security_headers(client.get("/api/health"))
    _assert_security_headers(client.get("/api/nothing-here"))
    _assert_security_headers(client.post("/api/auth/login", json={}))


def test_security_headers_on_gated_responses(app, client):
    app.state.api_limiter = _small_api_limiter(max_hits=1)
    client.get("/api/health")
    _assert_security_headers(client.get("/api/health"))

    app.state.ip_access.block("testclient")
    _assert_security_headers(client.get("/api/health"))


def test_no_hsts_outside_production(client):
    assert "strict-transport-security" not in client.get("/api/health").headers
