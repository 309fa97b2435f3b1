from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from html import escape as html_escape

from sqlalchemy.orm import Session

from kino.core.config import settings
from kino.core.security import codes_match, generate_numeric_code, hash_verification_code
from kino.models.email_verification_code import PURPOSE_CONFIRM_EMAIL, EmailVerificationCode
from kino.models.user import User
from kino.services.auth_errors import InvalidOrExpiredCode
from kino.services.email import send_email

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def issue_verification_code(db: Session, user: User, *, purpose: str = PURPOSE_CONFIRM_EMAIL) -> str:
    """
    Generates a new numeric code for the user, stores only its hash, and returns the raw code.
    Any earlier unconsumed code for the same purpose is removed so only the newest one works.
    """
    code = generate_numeric_code(settings.EMAIL_VERIFICATION_CODE_LENGTH)
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.EMAIL_VERIFICATION_CODE_TTL_MINUTES)

    (
        db.query(EmailVerificationCode)
        .filter(
            EmailVerificationCode.user_id == user.id,
            EmailVerificationCode.purpose == purpose,
            EmailVerificationCode.consumed_at.is_(None),
        )
        .delete(synchronize_session=False)
    )

    db.add(
        EmailVerificationCode(
            user_id=user.id,
            purpose=purpose,
            code_hash=hash_verification_code(user.id, code),
            expires_at=expires_at,
        )
    )
    db.flush()
    return code


def get_active_code(db: Session, user: User, *, purpose: str = PURPOSE_CONFIRM_EMAIL) -> EmailVerificationCode | None:
    return (
        db.query(EmailVerificationCode)
        .filter(
            EmailVerificationCode.user_id == user.id,
            EmailVerificationCode.purpose == purpose,
            EmailVerificationCode.consumed_at.is_(None),
        )
        .order_by(EmailVerificationCode.id.desc())
        .first()
    )


def consume_verification_code(
    db: Session,
    user: User,
    code: str,
    *,
    purpose: str = PURPOSE_CONFIRM_EMAIL,
) -> EmailVerificationCode:
    """
    Marks the active code as used. Raises InvalidOrExpiredCode on mismatch or expiry.
    A failed attempt leaves the record untouched so the user can retry within the window.
    """
    record = get_active_code(db, user, purpose=purpose)
    if not record:
        raise InvalidOrExpiredCode()

    now = datetime.now(timezone.utc)
    if _as_utc(record.expires_at) <= now:
        raise InvalidOrExpiredCode()

    if not codes_match(record.code_hash, user.id, (code or "").strip()):
        raise InvalidOrExpiredCode()

    record.mark_consumed(now)
    db.add(record)
    return record


def send_verification_code_email(*, to_email: str, username: str, code: str) -> None:
    """
    Renders the verification message and hands it to the mailer.
    Raises EmailDeliveryError / EmailNotConfiguredError from the mailer unchanged.
    """
    expires_minutes = settings.EMAIL_VERIFICATION_CODE_TTL_MINUTES
    expires_text = f"{expires_minutes} minute{'s' if expires_minutes != 1 else ''}"
    subject = "Your Kino verification code"

    html_body = f"""
    <html>
      <body style="font-family: Arial, sans-serif; background: #fdf2f8; padding: 24px; color: #1e293b;">
        <div style="max-width: 520px; margin: 0 auto; background: #ffffff; border-radius: 16px; padding: 32px;">
          <h2 style="margin-top: 0; font-size: 1.5rem;">Welcome to Kino, {html_escape(username)}!</h2>
          <p style="line-height: 1.6; color: #475569;">
            Enter the code below to verify your email. It expires in {expires_text}.
          </p>
          <div style="margin: 24px 0; background: #f43f5e; color: #ffffff; font-size: 32px; letter-spacing: 8px; text-align: center; padding: 18px; border-radius: 12px;">
            {code}
          </div>
          <p style="line-height: 1.6; color: #94a3b8;">
            Didn't sign up? You can ignore this message.
          </p>
        </div>
      </body>
    </html>
    """.strip()

    text_body = f"""
Welcome to Kino, {username}!

Enter this code to verify your email (expires in {expires_text}):

{code}

Didn't sign up? You can ignore this message.
""".strip()

    msg_id = send_email(to_email=to_email, subject=subject, body=text_body, html=html_body)
    # Never log the code itself.
    logger.info("Verification email dispatched: to=%s provider=%s msg_id=%s", to_email, settings.EMAIL_PROVIDER, msg_id)
