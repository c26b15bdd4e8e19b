from pydantic import ConfigDict, EmailStr, field_validator

from mywork.core.enums import UserRole
from mywork.core.security import validate_new_password
from mywork.schemas.common import CamelModel, UtcDatetime


class UserCreateIn(CamelModel):
    email: EmailStr
    name: str | None = None
    role: UserRole = UserRole.USER
    phone: str | None = None
    company: str | None = None
    password: str | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str | None) -> str | None:
        return None if value is None else validate_new_password(value)

    @field_validator("name", "phone", "company")
    @classmethod
    def normalize_optional(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "john@example.com",
                "name": "John Smith",
                "role": "user",
                "phone": "(412) 555-0123",
                "company": "3 Rivers Painting",
            }
        }
    )


class UserOut(CamelModel):
    id: str
    email: str
    name: str | None = None
    role: str
    phone: str | None = None
    company: str | None = None
    has_password: bool = False
    created_at: UtcDatetime
    updated_at: UtcDatetime
