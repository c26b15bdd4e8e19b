import hashlib
from datetime import datetime, timedelta, timezone

from mywork.core.config import settings
from mywork.models.invite import Invite


def hash_invite_token(raw_token: str) -> str:
    token_material = f"{settings.secret_key}:{(raw_token or '').strip()}"
    return hashlib.sha256(token_material.encode("utf-8")).hexdigest()


def invite_expiry(now: datetime | None = None) -> datetime:
    return (now or datetime.now(timezone.utc)) + timedelta(days=settings.invite_expire_days)


def build_invite_link(raw_token: str) -> str:
    return f"{settings.app_base_url}/accept-invite?token={raw_token}"


def is_invite_expired(invite: Invite, now: datetime | None = None) -> bool:
    expires_at = invite.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return (now or datetime.now(timezone.utc)) > expires_at
