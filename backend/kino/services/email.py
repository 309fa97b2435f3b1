from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate
from html import escape as html_escape

import resend

from kino.core.config import settings

logger = logging.getLogger(__name__)


class EmailNotConfiguredError(RuntimeError):
    pass


class EmailDeliveryError(RuntimeError):
    """
    Raised when a provider is configured but delivery fails.
    Message should be safe to surface to clients in dev.
    """


def _normalize_provider(raw: str | None) -> str:
    """
    Supported providers:
    - smtp (default when unset)
    - resend
    Alias:
    - gmail -> smtp
    """
    provider = (raw or "").strip().lower()
    if not provider:
        return "smtp"
    if provider == "gmail":
        return "smtp"
    if provider in {"smtp", "resend"}:
        return provider
    raise EmailNotConfiguredError(
        f"Unsupported EMAIL_PROVIDER={provider!r}. Supported: smtp (default), resend. Alias: gmail -> smtp."
    )


def _smtp_from_email() -> str:
    # Gmail-style setups authenticate and send as the same mailbox.
    sender = settings.SMTP_FROM_EMAIL or settings.SMTP_USERNAME
    if not sender:
        raise EmailNotConfiguredError("SMTP_FROM_EMAIL is not set")
    return sender


def _require_smtp_config() -> str:
    if not settings.SMTP_HOST:
        raise EmailNotConfiguredError("SMTP_HOST is not set")
    # Username/password may be optional for some SMTP servers, so don't hard-require.
    return _smtp_from_email()


def _require_resend_config() -> tuple[str, str]:
    api_key = (settings.RESEND_API_KEY or "").strip()
    if not api_key:
        raise EmailNotConfiguredError("RESEND_API_KEY is not set")
    if not settings.FROM_EMAIL:
        raise EmailNotConfiguredError("FROM_EMAIL is not set")
    return api_key, settings.FROM_EMAIL


def _send_email_resend(to_email: str, subject: str, body: str, html: str) -> str | None:
    api_key, from_email = _require_resend_config()

    payload = {
        "from": from_email,
        "to": [to_email],
        "subject": subject,
        "text": body,
        "html": html,
    }

    try:
        resend.api_key = api_key
        res = resend.Emails.send(payload)  # type: ignore[attr-defined]
    except Exception as e:  # noqa: BLE001 - the SDK raises several unrelated error types
        logger.exception("Resend email failed")
        raise EmailDeliveryError(f"Resend send failed: {e}") from e

    msg_id: str | None = None
    if isinstance(res, dict):
        if res.get("error"):
            raise EmailDeliveryError(f"Resend API error: {res.get('error')}")
        v = res.get("id")
        if isinstance(v, str) and v.strip():
            msg_id = v.strip()

    logger.info("Resend email sent: to=%s msg_id=%s", to_email, msg_id)
    return msg_id


def _build_mime(from_email: str, to_email: str, subject: str, body: str, html: str) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["From"] = from_email
    msg["To"] = to_email
    msg["Subject"] = subject
    msg["Date"] = formatdate(localtime=True)
    msg.attach(MIMEText(body, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))
    return msg


def _send_email_smtp(to_email: str, subject: str, body: str, html: str) -> None:
    """
    Send via SMTP using stdlib only. Connect/send are bounded by SMTP_TIMEOUT_SECONDS.
    """
    from_email = _require_smtp_config()
    msg = _build_mime(from_email, to_email, subject, body, html)
    timeout = settings.SMTP_TIMEOUT_SECONDS

    try:
        if settings.SMTP_USE_SSL:
            server: smtplib.SMTP = smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=timeout)
        else:
            server = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=timeout)
    except (OSError, smtplib.SMTPException) as e:
        logger.exception("SMTP connect failed: host=%s port=%s", settings.SMTP_HOST, settings.SMTP_PORT)
        raise EmailDeliveryError("Could not connect to the mail server") from e

    try:
        server.ehlo()
        if settings.SMTP_USE_TLS and not settings.SMTP_USE_SSL:
            server.starttls()
            server.ehlo()

        if settings.SMTP_USERNAME:
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)

        server.sendmail(from_email, [to_email], msg.as_string())
    except (OSError, smtplib.SMTPException) as e:
        logger.exception("SMTP send failed: to=%s", to_email)
        raise EmailDeliveryError("Mail server rejected or dropped the message") from e
    finally:
        try:
            server.quit()
        except (OSError, smtplib.SMTPException):
            pass

    logger.info("SMTP email sent: to=%s", to_email)


def send_email(to_email: str, subject: str, body: str, html: str | None = None) -> str | None:
    """
    Sends email using configured provider.
    - EMAIL_ENABLED=false: raises EmailNotConfiguredError; nothing is sent
    - EMAIL_PROVIDER=smtp (default, alias gmail): stdlib smtplib
    - EMAIL_PROVIDER=resend: Resend API via its official SDK
    """
    if html is None:
        html = f"<pre>{html_escape(body)}</pre>"

    if not settings.EMAIL_ENABLED:
        # Callers must not report a message as sent when nothing went out.
        logger.warning("Email delivery disabled; not sending to=%s subject=%r", to_email, subject)
        raise EmailNotConfiguredError("Email delivery is disabled (EMAIL_ENABLED=false)")

    provider = _normalize_provider(settings.EMAIL_PROVIDER)
    if provider == "resend":
        return _send_email_resend(to_email=to_email, subject=subject, body=body, html=html)
    _send_email_smtp(to_email=to_email, subject=subject, body=body, html=html)
    return None
