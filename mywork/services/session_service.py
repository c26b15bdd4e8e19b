"""Refresh-token backed sessions.

A session is an access/refresh JWT pair. Each refresh token is tracked by its
`jti` so it can be rotated once and revoked on logout or password change.
"""

from datetime import datetime, timezone

from fastapi import Request
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from mywork.core.security import InvalidTokenError, TokenKind, issue_token, read_token
from mywork.db.base import utc_now
from mywork.models.refresh_token import RefreshToken
from mywork.schemas.auth import TokenOut


def client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for", "").strip()
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def issue_token_pair(
    db: Session, *, user_id: str, client_ip: str | None = None
) -> tuple[TokenOut, str]:
    """Creates an access/refresh pair and records the refresh token; caller commits."""
    access_token = issue_token(user_id, TokenKind.ACCESS)
    refresh_token = issue_token(user_id, TokenKind.REFRESH)
    refresh_claims = read_token(refresh_token, TokenKind.REFRESH)

    db.add(
        RefreshToken(
            user_id=user_id,
            token_jti=refresh_claims.jti,
            expires_at=refresh_claims.expires_at,
            created_by_ip=client_ip,
        )
    )

    return (
        TokenOut(access_token=access_token, refresh_token=refresh_token),
        refresh_claims.jti,
    )


def _is_live(row: RefreshToken, now: datetime) -> bool:
    expires_at = row.expires_at
    # SQLite hands back naive datetimes.
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return row.revoked_at is None and expires_at > now


def rotate_refresh_token(db: Session, refresh_token: str, *, client_ip: str | None) -> TokenOut | None:
    """Swaps a live refresh token for a new pair; None when it cannot be used. Caller commits."""
    try:
        claims = read_token(refresh_token, TokenKind.REFRESH)
    except InvalidTokenError:
        return None

    row = db.execute(
        select(RefreshToken).where(
            RefreshToken.token_jti == claims.jti,
            RefreshToken.user_id == claims.user_id,
        )
    ).scalar_one_or_none()
    now = utc_now()
    if row is None or not _is_live(row, now):
        return None

    row.revoked_at = now
    token_pair, new_jti = issue_token_pair(db, user_id=claims.user_id, client_ip=client_ip)
    row.replaced_by_jti = new_jti
    return token_pair


def revoke_refresh_token(db: Session, refresh_token: str) -> bool:
    try:
        claims = read_token(refresh_token, TokenKind.REFRESH)
    except InvalidTokenError:
        return False
    result = db.execute(
        update(RefreshToken)
        .where(RefreshToken.token_jti == claims.jti, RefreshToken.revoked_at.is_(None))
        .values(revoked_at=utc_now())
    )
    return result.rowcount > 0


def revoke_user_refresh_tokens(db: Session, user_id: str) -> None:
    db.execute(
        update(RefreshToken)
        .where(
            RefreshToken.user_id == user_id,
            RefreshToken.revoked_at.is_(None),
        )
        .values(revoked_at=utc_now())
    )
