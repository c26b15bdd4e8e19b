"""Best-effort side effects run after the primary write has committed.

These functions are scheduled as FastAPI background tasks. They receive plain
values rather than ORM instances because the request session is closed by the
time they run. Every failure is logged and swallowed so that a delivery
problem never changes an API response.
"""

import logging
from datetime import datetime

from mywork.core.config import settings
from mywork.core.observability import log_event
from mywork.services.email_service import send_invite_email
from mywork.services.sms_provider import SmsSendRequest, get_sms_provider


def format_alert_message(
    *,
    alert_title: str,
    job_title: str,
    severity: str,
    description: str | None,
) -> str:
    return (
        f"MyWork Alert: {alert_title}\n"
        f"Job: {job_title}\n"
        f"Severity: {severity}\n"
        f"Details: {description or 'N/A'}"
    )


def dispatch_alert_sms(
    *,
    alert_id: str,
    job_id: str,
    job_title: str,
    assignee_phone: str,
    alert_title: str,
    severity: str,
    description: str | None,
) -> None:
    try:
        provider = get_sms_provider()
    except ValueError as exc:
        log_event("sms.failed", level=logging.WARNING, alert_id=alert_id, job_id=job_id, error=str(exc))
        return

    if not provider.is_configured():
        log_event(
            "sms.skipped",
            level=logging.WARNING,
            alert_id=alert_id,
            job_id=job_id,
            provider=provider.name,
            reason="provider not configured",
        )
        return

    recipient = settings.alert_recipient_phone or assignee_phone
    body = format_alert_message(
        alert_title=alert_title,
        job_title=job_title,
        severity=severity,
        description=description,
    )
    try:
        result = provider.send_message(SmsSendRequest(recipient=recipient, body=body))
    except Exception as exc:  # noqa: BLE001 - delivery is best-effort
        log_event(
            "sms.failed",
            level=logging.WARNING,
            alert_id=alert_id,
            job_id=job_id,
            provider=provider.name,
            error=str(exc),
        )
        return

    log_event(
        "sms.sent",
        alert_id=alert_id,
        job_id=job_id,
        provider=result.provider,
        message_id=result.message_id,
        status=result.status,
    )


def dispatch_invite_email(
    *,
    invite_id: str,
    recipient_email: str,
    inviter: str,
    invite_link: str,
    expires_at: datetime,
) -> None:
    result = send_invite_email(
        recipient_email=recipient_email,
        inviter=inviter,
        invite_link=invite_link,
        expires_at=expires_at,
    )
    if result.status == "sent":
        log_event("email.sent", invite_id=invite_id, recipient=recipient_email)
    elif result.status == "not_configured":
        log_event(
            "email.skipped",
            level=logging.WARNING,
            invite_id=invite_id,
            recipient=recipient_email,
            reason=result.detail,
        )
    else:
        log_event(
            "email.failed",
            level=logging.WARNING,
            invite_id=invite_id,
            recipient=recipient_email,
            error=result.detail,
        )
