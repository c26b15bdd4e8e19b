from collections.abc import Iterable

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from mywork.core.enums import LineItemStatus
from mywork.core.money import ZERO_MONEY, line_total, to_money
from mywork.models.duration_change_request import DurationChangeRequest
from mywork.models.job import Job, LineItem
from mywork.models.note import Note
from mywork.models.photo import Photo
from mywork.models.user import User
from mywork.schemas.job import LineItemIn

DEFAULT_LINE_ITEM_TITLE = "Line item"


def resolve_user(db: Session, *, user_id: str | None, email: str | None) -> User | None:
    """Looks a user up by id first, then by case-insensitive email."""
    if user_id:
        user = db.get(User, user_id)
        if user:
            return user
    if email:
        normalized = email.strip().lower()
        return db.execute(
            select(User).where(func.lower(User.email) == normalized)
        ).scalar_one_or_none()
    return None


def clamp_duration(value: int | None) -> int:
    if value is None:
        return 1
    return max(1, int(value))


def build_line_items(items: Iterable[LineItemIn]) -> list[LineItem]:
    rows: list[LineItem] = []
    for position, item in enumerate(items):
        quantity = max(1, item.quantity or 1)
        rate = to_money(item.rate if item.rate is not None else ZERO_MONEY)
        rows.append(
            LineItem(
                position=position,
                title=(item.title or "").strip() or DEFAULT_LINE_ITEM_TITLE,
                description=item.description or "",
                quantity=quantity,
                rate=rate,
                total=line_total(quantity, rate),
                status=(item.status or LineItemStatus.PENDING).value,
            )
        )
    return rows


def job_load_options():
    return (
        selectinload(Job.assigned_to),
        selectinload(Job.created_by),
        selectinload(Job.line_items),
        selectinload(Job.notes).selectinload(Note.user),
        selectinload(Job.photos).selectinload(Photo.user),
        selectinload(Job.service_alerts),
        selectinload(Job.duration_change_requests).selectinload(
            DurationChangeRequest.requested_by
        ),
    )


def load_job(db: Session, job_id: str) -> Job | None:
    return db.execute(
        select(Job).where(Job.id == job_id).options(*job_load_options())
    ).scalar_one_or_none()


def get_job_or_404(db: Session, job_id: str) -> Job:
    job = db.get(Job, job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job
