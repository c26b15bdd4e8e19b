from pydantic import ConfigDict, EmailStr, field_validator

from mywork.schemas.auth import TokenOut
from mywork.schemas.common import CamelModel, UtcDatetime
from mywork.schemas.user import UserOut


class InviteCreateIn(CamelModel):
    email: EmailStr
    created_by: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("created_by")
    @classmethod
    def validate_created_by(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("createdBy is required")
        return cleaned

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"email": "new.painter@example.com", "createdBy": "admin@example.com"}
        }
    )


class InviteOut(CamelModel):
    id: str
    email: str
    status: str
    created_by: str
    created_at: UtcDatetime
    expires_at: UtcDatetime
    accepted_at: UtcDatetime | None = None


class InviteCreateOut(InviteOut):
    token: str
    invite_link: str


class InviteAcceptIn(CamelModel):
    token: str
    name: str

    @field_validator("token", "name")
    @classmethod
    def validate_required(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Token and name are required")
        return cleaned

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"token": "paste-invite-token-here", "name": "Alex Painter"}
        }
    )


class InviteAcceptOut(CamelModel):
    user: UserOut
    message: str
    session: TokenOut
