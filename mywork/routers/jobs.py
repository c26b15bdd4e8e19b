from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mywork.core.api_docs import error_responses
from mywork.core.deps import get_db
from mywork.core.enums import JobStatus
from mywork.core.observability import log_event
from mywork.db.base import utc_now
from mywork.models.job import Job, LineItem
from mywork.schemas.common import SuccessOut
from mywork.schemas.job import JobCreateIn, JobDetailOut, JobOut, JobUpdateIn
from mywork.services.job_service import (
    build_line_items,
    clamp_duration,
    get_job_or_404,
    job_load_options,
    load_job,
    resolve_user,
)

router = APIRouter(prefix="/jobs", tags=["jobs"])

# Plain columns copied as-is when present in a PUT body.
_OPTIONAL_COLUMNS = (
    "description",
    "start_date",
    "end_date",
    "customer_name",
    "customer_address",
    "customer_phone",
)


@router.get(
    "",
    response_model=list[JobOut],
    summary="List jobs",
    description="Jobs ordered by scheduled date, optionally filtered by assignee and status.",
    responses=error_responses(400, 500),
)
def list_jobs(
    user_id: str | None = Query(default=None, alias="userId"),
    job_status: JobStatus | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
):
    stmt = select(Job).options(*job_load_options())
    if user_id:
        stmt = stmt.where(Job.assigned_to_id == user_id)
    if job_status:
        stmt = stmt.where(Job.status == job_status.value)
    stmt = stmt.order_by(Job.scheduled_date.asc(), Job.id.asc())
    return db.execute(stmt).scalars().all()


@router.get(
    "/{job_id}",
    response_model=JobDetailOut,
    summary="Get job detail",
    responses=error_responses(404, 500),
)
def get_job(job_id: str, db: Session = Depends(get_db)):
    job = load_job(db, job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.post(
    "",
    response_model=JobDetailOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create job",
    description="Creates a job together with its line items. Assignee and creator resolve by id or email.",
    responses=error_responses(400, 500),
)
def create_job(payload: JobCreateIn, db: Session = Depends(get_db)):
    assignee = resolve_user(db, user_id=payload.assigned_to_id, email=payload.assigned_to_email)
    creator = resolve_user(db, user_id=payload.created_by_id, email=payload.created_by_email)
    if not assignee or not creator:
        raise HTTPException(status_code=400, detail="Missing assignedTo or createdBy user")

    job = Job(
        title=payload.title,
        description=payload.description,
        scheduled_date=payload.scheduled_date,
        start_date=payload.start_date,
        end_date=payload.end_date,
        duration=clamp_duration(payload.duration),
        customer_name=payload.customer_name,
        customer_address=payload.customer_address,
        customer_phone=payload.customer_phone,
        assigned_to_id=assignee.id,
        created_by_id=creator.id,
        line_items=build_line_items(payload.line_items),
    )
    try:
        db.add(job)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    log_event(
        "job.created",
        job_id=job.id,
        assigned_to_id=assignee.id,
        created_by_id=creator.id,
        line_items=len(payload.line_items),
    )
    return load_job(db, job.id)


def _apply_job_fields(db: Session, job: Job, payload: JobUpdateIn) -> None:
    fields_set = payload.model_fields_set

    if "title" in fields_set:
        if payload.title is None:
            raise HTTPException(status_code=400, detail="title cannot be null")
        job.title = payload.title
    if "status" in fields_set:
        if payload.status is None:
            raise HTTPException(status_code=400, detail="status cannot be null")
        job.status = payload.status.value
    if "scheduled_date" in fields_set:
        if payload.scheduled_date is None:
            raise HTTPException(status_code=400, detail="scheduledDate cannot be null")
        job.scheduled_date = payload.scheduled_date
    if "duration" in fields_set:
        job.duration = clamp_duration(payload.duration)

    for column in _OPTIONAL_COLUMNS:
        if column in fields_set:
            setattr(job, column, getattr(payload, column))

    if fields_set & {"assigned_to_id", "assigned_to_email"}:
        assignee = resolve_user(db, user_id=payload.assigned_to_id, email=payload.assigned_to_email)
        if not assignee:
            raise HTTPException(status_code=400, detail="Assigned user not found")
        job.assigned_to_id = assignee.id


def _replace_line_items(db: Session, job: Job, payload: JobUpdateIn) -> int:
    db.execute(delete(LineItem).where(LineItem.job_id == job.id))
    db.expire(job, ["line_items"])
    new_items = build_line_items(payload.line_items)
    for item in new_items:
        item.job_id = job.id
        db.add(item)
    return len(new_items)


@router.put(
    "/{job_id}",
    response_model=JobDetailOut,
    summary="Update job",
    description=(
        "Partial update: only fields present in the body change. When `lineItems` is an array "
        "the job's line items are replaced in the same transaction; `null` leaves them unchanged."
    ),
    responses=error_responses(400, 404, 500),
)
def update_job(job_id: str, payload: JobUpdateIn, db: Session = Depends(get_db)):
    job = get_job_or_404(db, job_id)
    replaced: int | None = None

    try:
        _apply_job_fields(db, job, payload)
        # lineItems: null leaves the existing set alone.
        if payload.line_items is not None:
            replaced = _replace_line_items(db, job, payload)
        job.updated_at = utc_now()
        db.commit()
    except (HTTPException, SQLAlchemyError):
        db.rollback()
        raise

    log_event(
        "job.updated",
        job_id=job_id,
        fields=sorted(payload.model_fields_set - {"line_items"}),
        line_items_replaced=replaced,
    )
    return load_job(db, job_id)


@router.delete(
    "/{job_id}",
    response_model=SuccessOut,
    summary="Delete job",
    description="Deletes the job and everything it owns.",
    responses=error_responses(404, 500),
)
def delete_job(job_id: str, db: Session = Depends(get_db)):
    job = get_job_or_404(db, job_id)
    try:
        db.delete(job)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    log_event("job.deleted", job_id=job_id)
    return SuccessOut()
