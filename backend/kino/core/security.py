# kino/core/security.py
from __future__ import annotations

import hashlib
import hmac
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from kino.core.config import settings

if TYPE_CHECKING:
    from kino.models.user import User

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

ACCESS_TOKEN_PURPOSE = "access"


class InvalidSession(ValueError):
    """Raised when a session credential fails signature, issuer, audience or expiry checks."""


# -------------------------
# Password hashing
# -------------------------
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


# -------------------------
# JWT helpers
# -------------------------
def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _require_jwt_secret() -> None:
    # Auth is always on -> JWT_SECRET must always exist
    if not settings.JWT_SECRET or not settings.JWT_SECRET.strip():
        raise RuntimeError("JWT_SECRET must be set (auth is required).")


def create_access_token(user: User) -> str:
    """
    Session credential used for API auth: Authorization: Bearer <token>
    sub = username, uid = account id. Valid for ACCESS_TOKEN_EXPIRE_DAYS.
    """
    _require_jwt_secret()

    now = _now_utc()
    exp = now + timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)

    payload = {
        "sub": user.username,
        "uid": user.id,
        "email": user.email,
        "jti": uuid.uuid4().hex,
        "purpose": ACCESS_TOKEN_PURPOSE,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Returns verified claims or raises InvalidSession.
    Keep this "pure" -- no FastAPI/HTTPException here.
    """
    _require_jwt_secret()
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
    except JWTError as e:
        raise InvalidSession("Invalid or expired token") from e

    if payload.get("purpose") != ACCESS_TOKEN_PURPOSE:
        raise InvalidSession("Invalid token purpose")
    if not payload.get("uid") or not payload.get("sub"):
        raise InvalidSession("Invalid token payload")

    return payload


# -------------------------
# One-time code helpers
# -------------------------
def generate_numeric_code(length: int) -> str:
    length = max(int(length), 4)
    return "".join(secrets.choice("0123456789") for _ in range(length))


def hash_verification_code(user_id: str, code: str) -> str:
    """
    Store only a keyed hash in DB. Binding the account id means a leaked hash
    can't be replayed against another account.
    """
    _require_jwt_secret()
    secret = settings.JWT_SECRET.encode("utf-8")
    message = f"{user_id}:{code}".encode("utf-8")
    return hmac.new(secret, message, hashlib.sha256).hexdigest()


def codes_match(expected_hash: str, user_id: str, submitted: str) -> bool:
    candidate = hash_verification_code(user_id, submitted)
    return hmac.compare_digest(expected_hash, candidate)
