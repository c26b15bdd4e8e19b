from pydantic import ConfigDict, EmailStr, field_validator

from mywork.core.security import validate_new_password
from mywork.schemas.common import CamelModel


class LoginIn(CamelModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"email": "admin@example.com", "password": "admin12345"}
        }
    )


class TokenOut(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshIn(CamelModel):
    refresh_token: str

    @field_validator("refresh_token")
    @classmethod
    def validate_refresh_token(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("refreshToken is required")
        return cleaned


class PasswordSetIn(CamelModel):
    current_password: str | None = None
    new_password: str

    @field_validator("new_password")
    @classmethod
    def check_new_password(cls, value: str) -> str:
        return validate_new_password(value)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"currentPassword": "old-password", "newPassword": "new-password-456"}
        }
    )
