import uuid
from dataclasses import dataclass
from typing import Protocol

import httpx

from mywork.core.config import settings


@dataclass(frozen=True)
class SmsSendRequest:
    recipient: str
    body: str


@dataclass(frozen=True)
class SmsSendResult:
    provider: str
    message_id: str
    status: str


class SmsProvider(Protocol):
    name: str

    def is_configured(self) -> bool:
        ...

    def send_message(self, request: SmsSendRequest) -> SmsSendResult:
        ...


class TwilioSmsProvider:
    name = "twilio"

    def is_configured(self) -> bool:
        return bool(
            settings.twilio_account_sid
            and settings.twilio_auth_token
            and settings.twilio_phone_number
        )

    def send_message(self, request: SmsSendRequest) -> SmsSendResult:
        if not self.is_configured():
            raise RuntimeError("Twilio credentials are not configured")

        account_sid = settings.twilio_account_sid
        url = f"{settings.twilio_api_base_url.rstrip('/')}/Accounts/{account_sid}/Messages.json"
        response = httpx.post(
            url,
            auth=(account_sid, settings.twilio_auth_token),
            data={
                "From": settings.twilio_phone_number,
                "To": request.recipient,
                "Body": request.body,
            },
            timeout=20,
        )
        response.raise_for_status()
        payload = response.json()
        return SmsSendResult(
            provider=self.name,
            message_id=str(payload.get("sid") or ""),
            status=str(payload.get("status") or "queued"),
        )


class StubSmsProvider:
    name = "sms_stub"

    def is_configured(self) -> bool:
        return True

    def send_message(self, request: SmsSendRequest) -> SmsSendResult:
        return SmsSendResult(
            provider=self.name,
            message_id=f"sms-{uuid.uuid4().hex[:14]}",
            status="sent",
        )


_SMS_PROVIDERS: dict[str, SmsProvider] = {
    "twilio": TwilioSmsProvider(),
    "sms_stub": StubSmsProvider(),
}


def get_sms_provider(name: str | None = None) -> SmsProvider:
    normalized = (name or settings.sms_provider_default or "").strip().lower()
    provider = _SMS_PROVIDERS.get(normalized)
    if not provider:
        available = ", ".join(sorted(_SMS_PROVIDERS))
        raise ValueError(f"Unknown SMS provider '{name}'. Available: {available}")
    return provider
