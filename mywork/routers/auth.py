import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from mywork.core.api_docs import error_responses
from mywork.core.config import settings
from mywork.core.deps import get_db
from mywork.core.observability import log_event
from mywork.core.rate_limit import LoginRateLimiter
from mywork.core.security import hash_password, verify_password
from mywork.core.security_current import get_current_user
from mywork.models.user import User
from mywork.schemas.auth import LoginIn, PasswordSetIn, RefreshIn, TokenOut
from mywork.schemas.common import OkOut
from mywork.schemas.user import UserOut
from mywork.services.session_service import (
    client_ip,
    issue_token_pair,
    revoke_refresh_token,
    revoke_user_refresh_tokens,
    rotate_refresh_token,
)

router = APIRouter(prefix="/auth", tags=["auth"])

_SESSION_EXAMPLE = {
    200: {
        "description": "Session token pair",
        "content": {
            "application/json": {
                "example": {
                    "accessToken": "eyJhbGciOiJIUzI1NiJ9.access",
                    "refreshToken": "eyJhbGciOiJIUzI1NiJ9.refresh",
                    "tokenType": "bearer",
                }
            }
        },
    }
}

login_rate_limiter = LoginRateLimiter.from_settings(settings)


def _find_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(func.lower(User.email) == email)).scalar_one_or_none()


@router.post(
    "/login",
    response_model=TokenOut,
    summary="Login",
    description="Email and password login. Repeated failures from one address lock the email for a while.",
    responses={**_SESSION_EXAMPLE, **error_responses(400, 401, 429, 500)},
)
def login(payload: LoginIn, request: Request, db: Session = Depends(get_db)):
    ip = client_ip(request)
    limiter_key = f"{payload.email}:{ip}"
    wait_seconds = login_rate_limiter.check(limiter_key)
    if wait_seconds:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many failed login attempts",
            headers={"Retry-After": str(wait_seconds)},
        )

    user = _find_user_by_email(db, payload.email)
    if user is None or not verify_password(payload.password, user.hashed_password):
        login_rate_limiter.register_failure(limiter_key)
        log_event("auth.login_failed", level=logging.WARNING, email=payload.email, ip=ip)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    login_rate_limiter.register_success(limiter_key)
    token_pair, _ = issue_token_pair(db, user_id=user.id, client_ip=ip)
    db.commit()
    log_event("auth.login", user_id=user.id)
    return token_pair


@router.post(
    "/refresh",
    response_model=TokenOut,
    summary="Rotate session",
    description="Exchanges a live refresh token for a new pair. The old refresh token stops working.",
    responses={**_SESSION_EXAMPLE, **error_responses(400, 401, 500)},
)
def refresh_session(payload: RefreshIn, request: Request, db: Session = Depends(get_db)):
    token_pair = rotate_refresh_token(db, payload.refresh_token, client_ip=client_ip(request))
    if token_pair is None:
        raise HTTPException(status_code=401, detail="Refresh token is invalid or expired")
    db.commit()
    return token_pair


@router.post(
    "/logout",
    response_model=OkOut,
    summary="Logout",
    description="Revokes the refresh token. Unknown or malformed tokens are ignored.",
    responses=error_responses(400, 500),
)
def logout(payload: RefreshIn, db: Session = Depends(get_db)):
    if revoke_refresh_token(db, payload.refresh_token):
        db.commit()
    return OkOut()


@router.get(
    "/me",
    response_model=UserOut,
    summary="Current user",
    responses=error_responses(401, 500),
)
def read_me(user: User = Depends(get_current_user)):
    return user


@router.post(
    "/password",
    response_model=OkOut,
    summary="Set or change password",
    description=(
        "Invited users have no password yet and set one without `currentPassword`. "
        "Changing an existing password needs the current one. Every open session of the "
        "user is closed."
    ),
    responses=error_responses(400, 401, 500),
)
def set_password(
    payload: PasswordSetIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if user.has_password:
        confirmed = payload.current_password is not None and verify_password(
            payload.current_password, user.hashed_password
        )
        if not confirmed:
            raise HTTPException(status_code=401, detail="Current password is incorrect")
        if payload.new_password == payload.current_password:
            raise HTTPException(status_code=400, detail="New password must be different")

    user.hashed_password = hash_password(payload.new_password)
    revoke_user_refresh_tokens(db, user.id)
    db.commit()
    log_event("auth.password_set", user_id=user.id)
    return OkOut()
