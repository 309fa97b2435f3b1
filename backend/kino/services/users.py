# kino/services/users.py
"""
Account store helpers.

Responsibilities:
- Lookups by username / email / id
- Creating an account together with its profile row
- Deleting accounts (zombie purge, compensating rollback)
- Password checks and the verified-email flag
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from kino.core.security import hash_password, verify_password
from kino.models.user import User
from kino.models.user_profile import UserProfile

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    """Usernames are matched exactly as stored (case-sensitive)."""
    return db.query(User).filter(User.username == (username or "").strip()).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    if not user_id:
        return None
    return db.get(User, user_id)


def create_user(
    db: Session,
    *,
    username: str,
    email: str,
    password: str,
    display_name: str | None = None,
) -> User:
    """
    Adds an unverified account plus its profile and flushes, so storage-level
    unique constraints fire here (IntegrityError) rather than at commit time.
    """
    clean_username = username.strip()
    user = User(
        username=clean_username,
        email=normalize_email(email),
        password_hash=hash_password(password),
        is_email_verified=False,
        email_verified_at=None,
    )
    user.profile = UserProfile(display_name=normalize_display_name(display_name, fallback=clean_username))
    db.add(user)
    db.flush()
    return user


def delete_user(db: Session, user: User) -> None:
    logger.info("Deleting account: id=%s username=%s verified=%s", user.id, user.username, user.is_email_verified)
    db.delete(user)
    db.flush()


def check_password(user: User, password: str) -> bool:
    return verify_password(password, user.password_hash)


def mark_email_verified(db: Session, user: User) -> None:
    user.is_email_verified = True
    user.email_verified_at = datetime.now(timezone.utc)
    db.add(user)


def normalize_display_name(name: str | None, fallback: str) -> str:
    if name:
        clean = name.strip()
        if clean:
            return clean[:100]
    return (fallback or "")[:100]
