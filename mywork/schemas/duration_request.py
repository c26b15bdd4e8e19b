from pydantic import ConfigDict, EmailStr, Field

from mywork.core.enums import DurationRequestStatus
from mywork.schemas.common import CamelModel, UserSummaryOut, UtcDatetime


class DurationRequestCreateIn(CamelModel):
    requested_by_id: str | None = None
    requested_by_email: EmailStr | None = None
    requested_duration: int = Field(ge=1)
    reason: str | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "requestedByEmail": "john@example.com",
                "requestedDuration": 3,
                "reason": "Extra prep work on the siding",
            }
        }
    )


class DurationRequestReviewIn(CamelModel):
    status: DurationRequestStatus

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"status": "approved"}
        }
    )


class DurationRequestOut(CamelModel):
    id: str
    job_id: str
    requested_by_id: str
    current_duration: int
    requested_duration: int
    reason: str | None = None
    status: str
    reviewed_by_id: str | None = None
    created_at: UtcDatetime
    reviewed_at: UtcDatetime | None = None
    requested_by: UserSummaryOut
