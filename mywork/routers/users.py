from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from mywork.core.api_docs import error_responses
from mywork.core.deps import get_db
from mywork.core.enums import UserRole
from mywork.core.security import hash_password
from mywork.models.user import User
from mywork.schemas.user import UserCreateIn, UserOut

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "",
    response_model=list[UserOut],
    summary="List users",
    description="Ordered by name; filter with `role` to build assignee pickers.",
    responses=error_responses(400, 500),
)
def list_users(
    role: UserRole | None = Query(default=None),
    db: Session = Depends(get_db),
):
    stmt = select(User)
    if role:
        stmt = stmt.where(User.role == role.value)
    return db.execute(stmt.order_by(User.name.asc(), User.email.asc())).scalars().all()


@router.post(
    "",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Find or create user",
    description="Returns the existing user for the email (200) or creates a new one (201).",
    responses=error_responses(400, 500),
)
def find_or_create_user(payload: UserCreateIn, response: Response, db: Session = Depends(get_db)):
    existing = db.execute(
        select(User).where(func.lower(User.email) == payload.email)
    ).scalar_one_or_none()
    if existing:
        response.status_code = status.HTTP_200_OK
        return existing

    user = User(
        email=payload.email,
        name=payload.name,
        role=payload.role.value,
        phone=payload.phone,
        company=payload.company,
        hashed_password=hash_password(payload.password) if payload.password else None,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
