from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
import smtplib
from typing import Literal

from mywork.core.config import settings

EmailDeliveryStatus = Literal["sent", "not_configured", "failed"]


@dataclass(frozen=True)
class EmailDeliveryResult:
    status: EmailDeliveryStatus
    detail: str | None = None


def _smtp_configured() -> bool:
    return bool(settings.smtp_host and settings.smtp_sender_email)


def _smtp_connection() -> smtplib.SMTP:
    if settings.smtp_use_ssl:
        return smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, timeout=20)
    return smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=20)


def _build_invite_body(
    *,
    inviter: str,
    invite_link: str,
    expires_at: datetime,
) -> str:
    lines = [
        f"You have been invited to join {settings.app_name}.",
        "",
        f"Invited by: {inviter}",
        f"Expires: {expires_at.isoformat()}",
        "",
        f"Accept invitation: {invite_link}",
        "",
        "If you were not expecting this invitation, you can ignore this email.",
    ]
    return "\n".join(lines)


def send_invite_email(
    *,
    recipient_email: str,
    inviter: str,
    invite_link: str,
    expires_at: datetime,
) -> EmailDeliveryResult:
    if not _smtp_configured():
        return EmailDeliveryResult(
            status="not_configured",
            detail="SMTP not configured",
        )

    message = EmailMessage()
    message["Subject"] = f"You're invited to {settings.app_name}"
    message["From"] = settings.smtp_sender_email
    message["To"] = recipient_email
    if settings.smtp_reply_to_email:
        message["Reply-To"] = settings.smtp_reply_to_email
    message.set_content(
        _build_invite_body(
            inviter=inviter,
            invite_link=invite_link,
            expires_at=expires_at,
        )
    )

    try:
        with _smtp_connection() as server:
            if not settings.smtp_use_ssl and settings.smtp_use_starttls:
                server.starttls()
            if settings.smtp_username:
                server.login(settings.smtp_username, settings.smtp_password or "")
            server.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        return EmailDeliveryResult(status="failed", detail=str(exc))

    return EmailDeliveryResult(status="sent", detail=None)
