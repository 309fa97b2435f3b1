from __future__ import annotations


def _assert_error_shape(res, *, error: str | None = None):
    data = res.json()
    assert isinstance(data, dict)
    assert isinstance(data.get("error"), str) and data["error"]
    assert isinstance(data.get("message"), str) and data["message"]
    if error is not None:
        assert data["error"] == error


def test_error_shape_401_missing_token(anon_client):
    res = anon_client.get("/api/reviews")
    assert res.status_code == 401
    _assert_error_shape(res, error="UNAUTHORIZED")


def test_error_shape_404_review_not_found(client):
    res = client.delete("/api/reviews/999999")
    assert res.status_code == 404
    _assert_error_shape(res, error="NOT_FOUND")


def test_error_shape_404_unknown_route(anon_client):
    res = anon_client.get("/api/does-not-exist")
    assert res.status_code == 404
    _assert_error_shape(res, error="NOT_FOUND")


def test_error_shape_409_duplicate_movie(client):
    payload = {"tmdbId": 603, "title": "The Matrix", "year": 1999}
    assert client.post("/api/movies", json=payload).status_code == 200
    res = client.post("/api/movies", json=payload)
    assert res.status_code == 409
    _assert_error_shape(res, error="CONFLICT")


def test_error_shape_422_request_validation_error(anon_client):
    res = anon_client.get("/api/reviews/feed", params={"limit": 0})
    assert res.status_code == 422
    _assert_error_shape(res, error="VALIDATION_ERROR")
    body = res.json()
    assert isinstance(body.get("details"), dict)
    assert isinstance(body["details"].get("errors"), list)


def test_error_shape_400_auth_validation_error(anon_client):
    res = anon_client.post("/api/auth/register", json={"username": "x", "email": "not-an-email", "password": "secret1"})
    assert res.status_code == 400
    _assert_error_shape(res, error="VALIDATION_ERROR")
    assert isinstance(res.json()["details"]["errors"], list)


def test_error_shape_keeps_domain_codes(anon_client, users, outbox):
    res = anon_client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "fresh@example.com", "password": "secret1"},
    )
    assert res.status_code == 400
    _assert_error_shape(res, error="DUPLICATE_USERNAME")


def test_error_shape_503_tmdb_not_configured(anon_client):
    from kino.core import config as app_config

    app_config.settings.TMDB_API_KEY = ""
    res = anon_client.get("/api/tmdb/now-playing")
    assert res.status_code == 503
    _assert_error_shape(res, error="SERVICE_UNAVAILABLE")


def test_health(anon_client):
    res = anon_client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}
