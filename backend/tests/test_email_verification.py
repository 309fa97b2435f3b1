from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import Session

from kino.core import config as app_config
from kino.models.email_verification_code import EmailVerificationCode
from kino.models.user import User
from kino.services import email_verification
from kino.services.auth_errors import AlreadyVerified, InvalidOrExpiredCode, UnknownAccount
from kino.services.email_verification import consume_verification_code, issue_verification_code
from kino.services.registration import confirm_email, register_account, resend_verification


def _wrong(code: str) -> str:
    return "000000" if code != "000000" else "111111"


@pytest.fixture()
def pending(db_session: Session, outbox) -> User:
    return register_account(db_session, username="drex", email="drex@x.com", password="secret1")


def test_issue_stores_only_a_hash(db_session: Session, pending, latest_code):
    code = latest_code()
    record = db_session.query(EmailVerificationCode).filter(EmailVerificationCode.user_id == pending.id).one()

    assert len(code) == app_config.settings.EMAIL_VERIFICATION_CODE_LENGTH
    assert code.isdigit()
    assert record.code_hash != code
    assert code not in record.code_hash
    assert record.consumed_at is None


def test_email_body_carries_code_and_escaped_username(db_session: Session, outbox, latest_code):
    register_account(db_session, username="<b>drex</b>", email="drex@x.com", password="secret1")
    msg = outbox[-1]
    code = latest_code()

    assert code in msg["body"]
    assert code in msg["html"]
    assert "<b>drex</b>" not in msg["html"]
    assert "&lt;b&gt;drex&lt;/b&gt;" in msg["html"]


def test_failed_attempt_keeps_code_usable(db_session: Session, pending, latest_code):
    code = latest_code()

    with pytest.raises(InvalidOrExpiredCode):
        confirm_email(db_session, user_id=pending.id, code=_wrong(code))

    user = confirm_email(db_session, user_id=pending.id, code=code)
    assert user.is_email_verified is True
    assert user.email_verified_at is not None


def test_code_is_single_use(anon_client, db_session: Session, pending, latest_code):
    code = latest_code()

    first = anon_client.post("/api/auth/verify-email", json={"userId": pending.id, "token": code})
    assert first.status_code == 200

    again = anon_client.post("/api/auth/verify-email", json={"userId": pending.id, "token": code})
    assert again.status_code == 400
    assert again.json()["error"] == "INVALID_OR_EXPIRED_CODE"


def test_expired_code_is_rejected_like_a_wrong_one(db_session: Session, pending, latest_code):
    code = latest_code()
    record = db_session.query(EmailVerificationCode).filter(EmailVerificationCode.user_id == pending.id).one()
    record.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
    db_session.commit()

    with pytest.raises(InvalidOrExpiredCode) as exc:
        confirm_email(db_session, user_id=pending.id, code=code)
    assert exc.value.message == InvalidOrExpiredCode.default_message

    db_session.expire_all()
    assert db_session.get(User, pending.id).is_email_verified is False


def test_resend_invalidates_previous_code(anon_client, db_session: Session, pending, outbox, latest_code):
    old_code = latest_code()

    res = anon_client.post("/api/auth/resend-verification", json={"email": "drex@x.com"})
    assert res.status_code == 200
    assert len(outbox) == 2
    new_code = latest_code()

    active = (
        db_session.query(EmailVerificationCode)
        .filter(EmailVerificationCode.user_id == pending.id, EmailVerificationCode.consumed_at.is_(None))
        .count()
    )
    assert active == 1

    if old_code != new_code:
        stale = anon_client.post("/api/auth/verify-email", json={"userId": pending.id, "token": old_code})
        assert stale.status_code == 400

    ok = anon_client.post("/api/auth/verify-email", json={"userId": pending.id, "token": new_code})
    assert ok.status_code == 200


def test_resend_unknown_email(db_session: Session, outbox):
    with pytest.raises(UnknownAccount):
        resend_verification(db_session, email="nobody@x.com")
    assert outbox == []


def test_resend_for_verified_account(anon_client, db_session: Session, users, outbox):
    alice, _ = users
    res = anon_client.post("/api/auth/resend-verification", json={"email": alice.email})
    assert res.status_code == 400
    assert res.json()["error"] == "ALREADY_VERIFIED"

    with pytest.raises(AlreadyVerified):
        resend_verification(db_session, email=alice.email)
    assert outbox == []


def test_resend_mail_failure_keeps_previous_code(anon_client, db_session: Session, pending, latest_code, monkeypatch):
    code = latest_code()

    def broken_send_email(to_email, subject, body, html=None):
        raise RuntimeError("provider down")

    monkeypatch.setattr(email_verification, "send_email", broken_send_email)

    res = anon_client.post("/api/auth/resend-verification", json={"email": "drex@x.com"})
    assert res.status_code == 500
    assert res.json()["error"] == "EMAIL_DELIVERY_FAILED"

    ok = anon_client.post("/api/auth/verify-email", json={"userId": pending.id, "token": code})
    assert ok.status_code == 200


def test_code_is_bound_to_its_account(db_session: Session, outbox, latest_code):
    a = register_account(db_session, username="one", email="one@x.com", password="secret1")
    code_a = latest_code("one@x.com")
    b = register_account(db_session, username="two", email="two@x.com", password="secret1")

    with pytest.raises(InvalidOrExpiredCode):
        consume_verification_code(db_session, b, code_a)
    db_session.rollback()

    assert consume_verification_code(db_session, a, code_a).consumed_at is not None


def test_issue_replaces_unconsumed_codes(db_session: Session, pending):
    issue_verification_code(db_session, pending)
    issue_verification_code(db_session, pending)
    db_session.commit()

    assert db_session.query(EmailVerificationCode).filter(EmailVerificationCode.user_id == pending.id).count() == 1


def test_resend_with_email_disabled_reports_failure(anon_client, db_session: Session, pending, latest_code, monkeypatch):
    from kino.services import email as email_service

    code = latest_code()
    app_config.settings.EMAIL_ENABLED = False
    # Route the verification mailer back to the real (disabled) implementation.
    monkeypatch.setattr(email_verification, "send_email", email_service.send_email)

    res = anon_client.post("/api/auth/resend-verification", json={"email": "drex@x.com"})
    assert res.status_code == 500
    assert res.json()["error"] == "EMAIL_DELIVERY_FAILED"

    ok = anon_client.post("/api/auth/verify-email", json={"userId": pending.id, "token": code})
    assert ok.status_code == 200
