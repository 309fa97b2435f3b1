from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from kino.core.security import create_access_token
from kino.models.user import User
from kino.services.auth_errors import EmailNotVerified, InvalidCredentials
from kino.services.users import check_password, get_user_by_username

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    user: User
    token: str


def authenticate(db: Session, *, username: str, password: str) -> AuthResult:
    """
    Password is checked before the verified flag, so an unverified account only
    reveals itself to someone who already knows its password.
    """
    user = get_user_by_username(db, username)
    if user is None:
        raise InvalidCredentials()

    if not check_password(user, password):
        raise InvalidCredentials()

    if not user.is_email_verified:
        raise EmailNotVerified()

    logger.info("Login succeeded: user_id=%s", user.id)
    return AuthResult(user=user, token=create_access_token(user))
