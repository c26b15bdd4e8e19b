from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from mywork.core.api_docs import error_responses
from mywork.core.deps import get_db
from mywork.core.enums import DurationRequestStatus
from mywork.core.observability import log_event
from mywork.core.security_current import get_current_user
from mywork.models.duration_change_request import DurationChangeRequest
from mywork.models.user import User
from mywork.schemas.duration_request import (
    DurationRequestCreateIn,
    DurationRequestOut,
    DurationRequestReviewIn,
)
from mywork.services.job_service import clamp_duration, get_job_or_404, resolve_user

router = APIRouter(prefix="/jobs/{job_id}/duration-requests", tags=["duration-requests"])


@router.get(
    "",
    response_model=list[DurationRequestOut],
    summary="List duration change requests",
    responses=error_responses(404, 500),
)
def list_duration_requests(job_id: str, db: Session = Depends(get_db)):
    get_job_or_404(db, job_id)
    return db.execute(
        select(DurationChangeRequest)
        .where(DurationChangeRequest.job_id == job_id)
        .options(selectinload(DurationChangeRequest.requested_by))
        .order_by(DurationChangeRequest.created_at.desc(), DurationChangeRequest.id.desc())
    ).scalars().all()


@router.post(
    "",
    response_model=DurationRequestOut,
    status_code=status.HTTP_201_CREATED,
    summary="Request a duration change",
    responses=error_responses(400, 404, 500),
)
def create_duration_request(
    job_id: str,
    payload: DurationRequestCreateIn,
    db: Session = Depends(get_db),
):
    job = get_job_or_404(db, job_id)
    requester = resolve_user(db, user_id=payload.requested_by_id, email=payload.requested_by_email)
    if not requester:
        raise HTTPException(status_code=400, detail="User not found for duration request")

    request_row = DurationChangeRequest(
        job_id=job.id,
        requested_by_id=requester.id,
        current_duration=job.duration,
        requested_duration=clamp_duration(payload.requested_duration),
        reason=(payload.reason or "").strip() or None,
    )
    db.add(request_row)
    db.commit()
    db.refresh(request_row)
    log_event(
        "duration_request.created",
        duration_request_id=request_row.id,
        job_id=job.id,
        requested_duration=request_row.requested_duration,
    )
    return request_row


@router.patch(
    "/{request_id}",
    response_model=DurationRequestOut,
    summary="Approve or reject a duration change",
    description=(
        "Admins only; the reviewer is the bearer-token user. "
        "Approving sets the job's duration to the requested value."
    ),
    responses=error_responses(400, 401, 403, 404, 500),
)
def review_duration_request(
    job_id: str,
    request_id: str,
    payload: DurationRequestReviewIn,
    db: Session = Depends(get_db),
    reviewer: User = Depends(get_current_user),
):
    job = get_job_or_404(db, job_id)
    request_row = db.execute(
        select(DurationChangeRequest).where(
            DurationChangeRequest.id == request_id,
            DurationChangeRequest.job_id == job.id,
        )
    ).scalar_one_or_none()
    if not request_row:
        raise HTTPException(status_code=404, detail="Duration request not found")

    if payload.status == DurationRequestStatus.PENDING:
        raise HTTPException(status_code=400, detail="status must be approved or rejected")

    if not reviewer.is_admin:
        raise HTTPException(status_code=403, detail="Only admins can review duration requests")

    if request_row.status != DurationRequestStatus.PENDING.value:
        raise HTTPException(status_code=400, detail="Duration request has already been reviewed")

    request_row.status = payload.status.value
    request_row.reviewed_by_id = reviewer.id
    request_row.reviewed_at = datetime.now(timezone.utc)
    if payload.status == DurationRequestStatus.APPROVED:
        job.duration = clamp_duration(request_row.requested_duration)

    db.commit()
    db.refresh(request_row)
    log_event(
        "duration_request.reviewed",
        duration_request_id=request_row.id,
        job_id=job.id,
        status=request_row.status,
    )
    return request_row
