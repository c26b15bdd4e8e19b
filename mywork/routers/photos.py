from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from mywork.core.api_docs import error_responses
from mywork.core.deps import get_db
from mywork.models.photo import Photo
from mywork.schemas.photo import PhotoOut
from mywork.services.job_service import get_job_or_404, resolve_user
from mywork.storage.local_provider import LocalStorageProvider, get_storage_provider

router = APIRouter(prefix="/jobs/{job_id}/photos", tags=["photos"])


@router.get(
    "",
    response_model=list[PhotoOut],
    summary="List job photos",
    description="Newest first, each with its uploader.",
    responses=error_responses(404, 500),
)
def list_photos(job_id: str, db: Session = Depends(get_db)):
    get_job_or_404(db, job_id)
    return db.execute(
        select(Photo)
        .where(Photo.job_id == job_id)
        .options(selectinload(Photo.user))
        .order_by(Photo.timestamp.desc(), Photo.id.desc())
    ).scalars().all()


@router.post(
    "",
    response_model=PhotoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Upload job photo",
    description="Multipart upload with `file`, `userId` or `userEmail`, and an optional `caption`.",
    responses=error_responses(400, 404, 500),
)
def upload_photo(
    job_id: str,
    file: UploadFile | None = File(default=None),
    user_id: str | None = Form(default=None, alias="userId"),
    user_email: str | None = Form(default=None, alias="userEmail"),
    caption: str | None = Form(default=None),
    db: Session = Depends(get_db),
    storage: LocalStorageProvider = Depends(get_storage_provider),
):
    job = get_job_or_404(db, job_id)
    uploader = resolve_user(db, user_id=user_id, email=user_email)
    if file is None or not file.filename or not uploader:
        raise HTTPException(status_code=400, detail="Missing file or user context")

    url = storage.save(file.filename, file.file.read())
    photo = Photo(
        job_id=job.id,
        user_id=uploader.id,
        url=url,
        caption=(caption or "").strip() or None,
    )
    try:
        db.add(photo)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        # Nothing references the stored file once the insert fails.
        storage.delete(url)
        raise
    db.refresh(photo)
    return photo
