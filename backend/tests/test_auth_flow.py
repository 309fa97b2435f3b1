from __future__ import annotations

from kino.core.security import decode_access_token
from kino.models.user import User


def test_login_returns_session_token_for_verified_user(anon_client, users):
    alice, _ = users
    res = anon_client.post("/api/auth/login", json={"username": "alice", "password": "test_password_123"})
    assert res.status_code == 200
    body = res.json()
    assert body["username"] == "alice"
    assert body["email"] == "alice@example.com"

    claims = decode_access_token(body["token"])
    assert claims["sub"] == "alice"
    assert claims["uid"] == alice.id
    assert claims["jti"]


def test_each_login_mints_a_distinct_token(anon_client, users):
    payload = {"username": "alice", "password": "test_password_123"}
    t1 = anon_client.post("/api/auth/login", json=payload).json()["token"]
    t2 = anon_client.post("/api/auth/login", json=payload).json()["token"]
    assert decode_access_token(t1)["jti"] != decode_access_token(t2)["jti"]


def test_login_unknown_user_looks_like_wrong_password(anon_client, users):
    unknown = anon_client.post("/api/auth/login", json={"username": "nobody", "password": "test_password_123"})
    wrong = anon_client.post("/api/auth/login", json={"username": "alice", "password": "nope-nope"})

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json() == wrong.json()
    assert unknown.json()["error"] == "INVALID_CREDENTIALS"


def test_login_username_is_case_sensitive(anon_client, users):
    res = anon_client.post("/api/auth/login", json={"username": "ALICE", "password": "test_password_123"})
    assert res.status_code == 401
    assert res.json()["error"] == "INVALID_CREDENTIALS"


def test_login_unverified_with_correct_password(anon_client, db_session, outbox):
    reg = anon_client.post(
        "/api/auth/register",
        json={"username": "pending", "email": "pending@x.com", "password": "secret1"},
    )
    assert reg.status_code == 200

    res = anon_client.post("/api/auth/login", json={"username": "pending", "password": "secret1"})
    assert res.status_code == 401
    assert res.json()["error"] == "EMAIL_NOT_VERIFIED"


def test_login_unverified_with_wrong_password(anon_client, db_session, outbox):
    anon_client.post(
        "/api/auth/register",
        json={"username": "pending", "email": "pending@x.com", "password": "secret1"},
    )

    res = anon_client.post("/api/auth/login", json={"username": "pending", "password": "not-it"})
    assert res.status_code == 401
    assert res.json()["error"] == "INVALID_CREDENTIALS"


def test_bearer_token_authenticates_protected_routes(anon_client, users):
    login = anon_client.post("/api/auth/login", json={"username": "alice", "password": "test_password_123"})
    token = login.json()["token"]

    res = anon_client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200
    assert res.json()["displayName"] == "Alice A"


def test_protected_route_without_token_is_401(anon_client, users):
    res = anon_client.get("/api/auth/profile")
    assert res.status_code == 401
    assert res.json()["error"] == "UNAUTHORIZED"
    assert res.headers.get("www-authenticate") == "Bearer"


def test_token_for_deleted_account_is_rejected(anon_client, db_session, users):
    login = anon_client.post("/api/auth/login", json={"username": "bob", "password": "test_password_123"})
    token = login.json()["token"]

    bob = db_session.query(User).filter(User.username == "bob").one()
    db_session.delete(bob)
    db_session.commit()

    res = anon_client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401
