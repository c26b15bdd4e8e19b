from pydantic import ConfigDict, EmailStr, field_validator

from mywork.schemas.common import CamelModel, UserSummaryOut, UtcDatetime


class NoteCreateIn(CamelModel):
    user_id: str | None = None
    user_email: EmailStr | None = None
    content: str
    is_private: bool = False

    @field_validator("content")
    @classmethod
    def validate_content(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("content is required")
        return cleaned

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "userEmail": "john@example.com",
                "content": "Customer asked for a second coat on the trim.",
                "isPrivate": False,
            }
        }
    )


class NoteOut(CamelModel):
    id: str
    job_id: str
    user_id: str
    content: str
    is_private: bool
    created_at: UtcDatetime
    user: UserSummaryOut
