"""
Registration and email-verification lifecycle.

register_account -> confirm_email -> (authentication.authenticate)
register_account -> resend_verification -> confirm_email

Every function here owns its unit of work: it either commits everything it
did, or rolls back and raises an AuthFlowError subclass.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from kino.models.user import User
from kino.services.auth_errors import (
    AlreadyVerified,
    DuplicateEmail,
    DuplicateUsername,
    EmailDeliveryFailed,
    UnknownAccount,
)
from kino.services.email_verification import (
    consume_verification_code,
    issue_verification_code,
    send_verification_code_email,
)
from kino.services.users import (
    create_user,
    delete_user,
    get_user_by_email,
    get_user_by_id,
    get_user_by_username,
    mark_email_verified,
)

logger = logging.getLogger(__name__)


def _purge_or_block(db: Session, existing: User | None, *, error: type[Exception]) -> None:
    """Verified owner blocks the registration; an unverified (zombie) owner is removed."""
    if existing is None:
        return
    if existing.is_email_verified:
        raise error()
    logger.info("Purging unverified account before re-registration: id=%s", existing.id)
    delete_user(db, existing)


def _duplicate_from_integrity_error(db: Session, username: str) -> Exception:
    # The insert lost a race with a concurrent registration; the constraint is authoritative.
    if get_user_by_username(db, username) is not None:
        return DuplicateUsername()
    return DuplicateEmail()


def _dispatch_code(user: User, code: str) -> None:
    try:
        send_verification_code_email(to_email=user.email, username=user.username, code=code)
    except Exception as e:  # noqa: BLE001 - any mailer failure means the code never reached the user
        logger.warning("Verification email failed: user_id=%s error=%s", user.id, e)
        raise EmailDeliveryFailed() from e


def register_account(
    db: Session,
    *,
    username: str,
    email: str,
    password: str,
    display_name: str | None = None,
) -> User:
    """
    Creates an unverified account and emails it a verification code.

    Raises:
        DuplicateUsername / DuplicateEmail: a verified account owns the username / email.
        EmailDeliveryFailed: the code could not be sent; nothing from this call is persisted.
    """
    username = username.strip()

    try:
        _purge_or_block(db, get_user_by_username(db, username), error=DuplicateUsername)
        _purge_or_block(db, get_user_by_email(db, email), error=DuplicateEmail)
        user = create_user(
            db,
            username=username,
            email=email,
            password=password,
            display_name=display_name,
        )
    except IntegrityError:
        db.rollback()
        raise _duplicate_from_integrity_error(db, username)
    except Exception:
        db.rollback()
        raise

    try:
        code = issue_verification_code(db, user)
        _dispatch_code(user, code)
        db.commit()
    except Exception:
        # Compensating rollback: the account (and any purge above) is undone together.
        db.rollback()
        logger.info("Registration rolled back: username=%s", username)
        raise

    db.refresh(user)
    logger.info("Registered account pending verification: id=%s username=%s", user.id, user.username)
    return user


def confirm_email(db: Session, *, user_id: str, code: str) -> User:
    """
    Raises:
        UnknownAccount: no account with that id.
        InvalidOrExpiredCode: wrong, consumed, or expired code (not distinguished).
    """
    user = get_user_by_id(db, user_id)
    if user is None:
        raise UnknownAccount()

    try:
        consume_verification_code(db, user, code)
    except Exception:
        db.rollback()
        raise

    mark_email_verified(db, user)
    db.commit()
    db.refresh(user)
    logger.info("Email verified: user_id=%s", user.id)
    return user


def resend_verification(db: Session, *, email: str) -> None:
    """
    Issues a fresh code (invalidating earlier ones) and emails it.

    Raises:
        UnknownAccount, AlreadyVerified, EmailDeliveryFailed
    """
    user = get_user_by_email(db, email)
    if user is None:
        raise UnknownAccount()
    if user.is_email_verified:
        raise AlreadyVerified()

    try:
        code = issue_verification_code(db, user)
        _dispatch_code(user, code)
        db.commit()
    except Exception:
        # The previously issued code stays active when the new one never went out.
        db.rollback()
        raise

    logger.info("Verification code re-sent: user_id=%s", user.id)
