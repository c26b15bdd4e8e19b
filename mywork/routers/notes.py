from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from mywork.core.api_docs import error_responses
from mywork.core.deps import get_db
from mywork.models.note import Note
from mywork.schemas.note import NoteCreateIn, NoteOut
from mywork.services.job_service import get_job_or_404, resolve_user

router = APIRouter(prefix="/jobs/{job_id}/notes", tags=["notes"])


@router.get(
    "",
    response_model=list[NoteOut],
    summary="List job notes",
    description="Newest first, each with its author.",
    responses=error_responses(404, 500),
)
def list_notes(job_id: str, db: Session = Depends(get_db)):
    get_job_or_404(db, job_id)
    return db.execute(
        select(Note)
        .where(Note.job_id == job_id)
        .options(selectinload(Note.user))
        .order_by(Note.created_at.desc(), Note.id.desc())
    ).scalars().all()


@router.post(
    "",
    response_model=NoteOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add job note",
    responses=error_responses(400, 404, 500),
)
def create_note(job_id: str, payload: NoteCreateIn, db: Session = Depends(get_db)):
    job = get_job_or_404(db, job_id)
    author = resolve_user(db, user_id=payload.user_id, email=payload.user_email)
    if not author:
        raise HTTPException(status_code=400, detail="User not found for note")

    note = Note(
        job_id=job.id,
        user_id=author.id,
        content=payload.content,
        is_private=payload.is_private,
    )
    db.add(note)
    db.commit()
    db.refresh(note)
    return note
