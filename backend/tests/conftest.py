import os
import re
import tempfile

# Ensure JWT_SECRET exists before importing kino.main (it calls require_jwt_secret() at import time).
os.environ.setdefault("JWT_SECRET", "test_jwt_secret")
# Keep uploaded avatars out of the working tree.
os.environ.setdefault("AVATAR_UPLOAD_DIR", tempfile.mkdtemp(prefix="kino-avatars-"))

from contextlib import contextmanager

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
import importlib

from kino.core.base import Base
from kino.core import config as app_config
from kino.core.security import hash_password

# Import models so they register with SQLAlchemy metadata.
from kino.models.user import User  # noqa: F401
from kino.models.user_profile import UserProfile  # noqa: F401
from kino.models.email_verification_code import EmailVerificationCode  # noqa: F401
from kino.models.movie import Movie  # noqa: F401
from kino.models.review import Review  # noqa: F401
from kino.models.review_like import ReviewLike  # noqa: F401

from kino.core.database import get_db
from kino.dependencies.auth import get_current_user, get_optional_user

TEST_PASSWORD = "test_password_123"


@pytest.fixture(scope="session")
def db_engine():
    # In-memory SQLite for fast, isolated tests.
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture()
def db_session(db_engine):
    # The in-memory DB persists across tests (StaticPool); reset schema per test.
    Base.metadata.drop_all(bind=db_engine)
    Base.metadata.create_all(bind=db_engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def _reset_mutable_settings():
    """
    Tests tweak the process-global settings object; restore it after each test.
    """
    keys = [
        "ENABLE_RATE_LIMITING",
        "PASSWORD_MIN_LENGTH",
        "PASSWORD_REQUIRE_DIGIT",
        "PASSWORD_REQUIRE_UPPER",
        "PASSWORD_REQUIRE_SYMBOL",
        "EMAIL_ENABLED",
        "EMAIL_PROVIDER",
        "EMAIL_VERIFICATION_CODE_TTL_MINUTES",
        "MAX_AVATAR_BYTES",
        "RESEND_API_KEY",
        "FROM_EMAIL",
        "SMTP_HOST",
        "SMTP_USERNAME",
        "SMTP_PASSWORD",
        "SMTP_FROM_EMAIL",
        "TMDB_API_KEY",
    ]
    original = {k: getattr(app_config.settings, k) for k in keys}
    try:
        yield
    finally:
        for k, v in original.items():
            setattr(app_config.settings, k, v)
        # Default all tests to "rate limiting disabled" unless a test explicitly reloads routes with it enabled.
        app_config.settings.ENABLE_RATE_LIMITING = False


@pytest.fixture()
def outbox(monkeypatch):
    """
    Captures verification emails instead of sending them.
    Each entry is a dict with to_email / subject / body / html.
    """
    from kino.services import email_verification

    sent: list[dict] = []

    def fake_send_email(to_email, subject, body, html=None):
        sent.append({"to_email": to_email, "subject": subject, "body": body, "html": html})
        return f"msg_test_{len(sent)}"

    monkeypatch.setattr(email_verification, "send_email", fake_send_email)
    return sent


@pytest.fixture()
def latest_code(outbox):
    """
    Returns a callable giving the numeric code from the newest captured email
    (optionally the newest one sent to a given address).
    """

    def _latest_code(to_email: str | None = None) -> str:
        messages = [m for m in outbox if to_email is None or m["to_email"] == to_email]
        assert messages, "no verification email captured"
        length = app_config.settings.EMAIL_VERIFICATION_CODE_LENGTH
        match = re.search(rf"^\s*(\d{{{length}}})\s*$", messages[-1]["body"], re.MULTILINE)
        assert match, messages[-1]["body"]
        return match.group(1)

    return _latest_code


@pytest.fixture()
def app(db_session):
    app_config.settings.JWT_SECRET = app_config.settings.JWT_SECRET or "test_jwt_secret"
    app_config.settings.ENABLE_RATE_LIMITING = False

    # SlowAPI decorators bind at import time, so reload the routes + app with rate limiting disabled
    # (the rate limiting test reloads modules with it enabled).
    import kino.routes.auth as auth_routes
    import kino.main as main

    importlib.reload(auth_routes)
    importlib.reload(main)
    fastapi_app = main.app

    def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


def make_user(db_session, username: str, email: str, *, verified: bool = True, display_name: str | None = None) -> User:
    user = User(
        username=username,
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        is_email_verified=verified,
    )
    user.profile = UserProfile(display_name=display_name or username)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture()
def users(db_session):
    """
    Two distinct verified users for ownership / isolation tests.
    """
    user_a = make_user(db_session, "alice", "alice@example.com", display_name="Alice A")
    user_b = make_user(db_session, "bob", "bob@example.com", display_name="Bob B")
    return user_a, user_b


@pytest.fixture()
def anon_client(app):
    """Client with no credentials and no auth overrides (real bearer handling)."""
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def client(app, users):
    """
    Default client authenticated as user_a.
    """
    user_a, _ = users
    app.dependency_overrides[get_current_user] = lambda: user_a
    app.dependency_overrides[get_optional_user] = lambda: user_a
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.pop(get_current_user, None)
    app.dependency_overrides.pop(get_optional_user, None)


@pytest.fixture()
def client_for(app):
    """
    Context manager to create a client authenticated as an arbitrary user.

    Usage:
        with client_for(user) as c:
            ...
    """

    @contextmanager
    def _client_for(user: User):
        # Restore whatever was there before so a surrounding `client` keeps its identity.
        previous = {dep: app.dependency_overrides.get(dep) for dep in (get_current_user, get_optional_user)}
        app.dependency_overrides[get_current_user] = lambda: user
        app.dependency_overrides[get_optional_user] = lambda: user
        try:
            with TestClient(app) as c:
                yield c
        finally:
            for dep, override in previous.items():
                if override is None:
                    app.dependency_overrides.pop(dep, None)
                else:
                    app.dependency_overrides[dep] = override

    return _client_for
