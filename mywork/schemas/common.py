from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _money_to_float(value):
    if isinstance(value, Decimal):
        return float(value)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]
MoneyFloat = Annotated[float, BeforeValidator(_money_to_float)]


class CamelModel(BaseModel):
    """Base for API payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserSummaryOut(CamelModel):
    id: str
    name: str | None = None
    email: str


class OkOut(BaseModel):
    ok: bool = True


class SuccessOut(BaseModel):
    success: bool = True


class ValidationIssueOut(BaseModel):
    field: str
    message: str
    type: str | None = None


class ErrorDetailOut(BaseModel):
    code: str
    message: str
    request_id: str
    path: str
    details: list[ValidationIssueOut] | None = None


class ErrorOut(BaseModel):
    error: ErrorDetailOut

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": {
                    "code": "bad_request",
                    "message": "Missing assignedTo or createdBy user",
                    "request_id": "8d8f2b00-6c79-4a45-8ff4-b0a5f2bc4bc2",
                    "path": "/jobs",
                    "details": None,
                }
            }
        }
    )
