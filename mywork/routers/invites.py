from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mywork.core.api_docs import error_responses
from mywork.core.deps import get_db
from mywork.core.enums import InviteStatus, UserRole
from mywork.core.id_utils import generate_invite_token
from mywork.core.observability import log_event
from mywork.models.invite import Invite
from mywork.models.user import User
from mywork.schemas.invite import (
    InviteAcceptIn,
    InviteAcceptOut,
    InviteCreateIn,
    InviteCreateOut,
    InviteOut,
)
from mywork.schemas.user import UserOut
from mywork.services.invite_service import (
    build_invite_link,
    hash_invite_token,
    invite_expiry,
    is_invite_expired,
)
from mywork.services.notification_service import dispatch_invite_email
from mywork.services.session_service import client_ip, issue_token_pair

router = APIRouter(prefix="/invites", tags=["invites"])


def _user_exists(db: Session, email: str) -> bool:
    found = db.execute(
        select(User.id).where(func.lower(User.email) == email.lower())
    ).scalar_one_or_none()
    return found is not None


def _invite_create_out(invite: Invite, raw_token: str) -> InviteCreateOut:
    return InviteCreateOut(
        id=invite.id,
        email=invite.email,
        status=invite.status,
        created_by=invite.created_by,
        created_at=invite.created_at,
        expires_at=invite.expires_at,
        accepted_at=invite.accepted_at,
        token=raw_token,
        invite_link=build_invite_link(raw_token),
    )


@router.post(
    "",
    response_model=InviteCreateOut,
    summary="Create or regenerate an invite",
    description=(
        "Creates a 7-day invite for a new email address. When a pending invite already exists "
        "for the email its token and expiry are regenerated instead, keeping the same id."
    ),
    responses=error_responses(400, 409, 500),
)
def create_invite(
    payload: InviteCreateIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    if _user_exists(db, payload.email):
        raise HTTPException(status_code=400, detail="User already exists")

    raw_token = generate_invite_token()
    invite = db.execute(
        select(Invite).where(
            Invite.email == payload.email,
            Invite.status == InviteStatus.PENDING.value,
        )
    ).scalar_one_or_none()

    if invite:
        invite.token_hash = hash_invite_token(raw_token)
        invite.expires_at = invite_expiry()
        event = "invite.regenerated"
    else:
        invite = Invite(
            email=payload.email,
            token_hash=hash_invite_token(raw_token),
            created_by=payload.created_by,
            expires_at=invite_expiry(),
        )
        db.add(invite)
        event = "invite.created"

    try:
        db.commit()
    except IntegrityError as exc:
        # A concurrent request created the pending invite first.
        db.rollback()
        raise HTTPException(status_code=409, detail="Invite is already being created") from exc
    db.refresh(invite)

    log_event(event, invite_id=invite.id, email=invite.email, created_by=invite.created_by)
    out = _invite_create_out(invite, raw_token)
    background_tasks.add_task(
        dispatch_invite_email,
        invite_id=invite.id,
        recipient_email=invite.email,
        inviter=invite.created_by,
        invite_link=out.invite_link,
        expires_at=out.expires_at,
    )
    return out


@router.get(
    "",
    response_model=list[InviteOut],
    summary="List pending invites",
    responses=error_responses(500),
)
def list_invites(db: Session = Depends(get_db)):
    return db.execute(
        select(Invite)
        .where(Invite.status == InviteStatus.PENDING.value)
        .order_by(Invite.created_at.desc(), Invite.id.desc())
    ).scalars().all()


@router.post(
    "/accept",
    response_model=InviteAcceptOut,
    summary="Accept an invite",
    description=(
        "Consumes a pending invite token, creates the user account and returns a session. "
        "Invited users can then set a password via `POST /auth/password`."
    ),
    responses=error_responses(400, 404, 500),
)
def accept_invite(payload: InviteAcceptIn, request: Request, db: Session = Depends(get_db)):
    invite = db.execute(
        select(Invite).where(Invite.token_hash == hash_invite_token(payload.token))
    ).scalar_one_or_none()
    if not invite:
        raise HTTPException(status_code=404, detail="Invalid or expired invite")
    if invite.status != InviteStatus.PENDING.value:
        raise HTTPException(status_code=400, detail="Invite has already been used")
    if is_invite_expired(invite):
        raise HTTPException(status_code=400, detail="Invite has expired")
    if _user_exists(db, invite.email):
        raise HTTPException(status_code=400, detail="User already exists")

    user = User(email=invite.email, name=payload.name, role=UserRole.USER.value)
    db.add(user)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail="User already exists") from exc

    # Only one concurrent acceptance may flip the invite out of pending.
    claimed = db.execute(
        update(Invite)
        .where(Invite.id == invite.id, Invite.status == InviteStatus.PENDING.value)
        .values(
            status=InviteStatus.ACCEPTED.value,
            accepted_at=datetime.now(timezone.utc),
            accepted_user_id=user.id,
        )
        .execution_options(synchronize_session=False)
    ).rowcount
    if claimed != 1:
        db.rollback()
        raise HTTPException(status_code=400, detail="Invite has already been used")

    session, _ = issue_token_pair(db, user_id=user.id, client_ip=client_ip(request))
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail="User already exists") from exc
    db.refresh(user)

    log_event("invite.accepted", invite_id=invite.id, user_id=user.id, email=user.email)
    return InviteAcceptOut(
        user=UserOut.model_validate(user),
        message="Account created successfully",
        session=session,
    )
