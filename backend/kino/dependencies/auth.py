# kino/dependencies/auth.py
from __future__ import annotations

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from kino.core.database import get_db
from kino.core.security import InvalidSession, decode_access_token
from kino.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_from_token(token: str, db: Session) -> User:
    try:
        payload = decode_access_token(token)
    except InvalidSession:
        raise _unauthorized("Invalid or expired token")

    user = db.get(User, str(payload["uid"]))
    if not user:
        raise _unauthorized("User not found")
    if not user.is_email_verified:
        raise _unauthorized("Email not verified")
    return user


def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Validates:
      - Authorization: Bearer <token>
      - token signature, issuer, audience, exp
      - user still exists + is verified
    Returns:
      - User SQLAlchemy model
    """
    if not creds or creds.scheme.lower() != "bearer":
        raise _unauthorized("Missing Authorization header")
    return _user_from_token(creds.credentials, db)


def get_optional_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User | None:
    """Anonymous callers get None; a credential that is present must still be valid."""
    if not creds:
        return None
    if creds.scheme.lower() != "bearer":
        raise _unauthorized("Missing Authorization header")
    return _user_from_token(creds.credentials, db)
