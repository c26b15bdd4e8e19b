from decimal import Decimal

from pydantic import ConfigDict, EmailStr, Field, field_validator

from mywork.core.enums import JobStatus, LineItemStatus
from mywork.schemas.alert import ServiceAlertOut
from mywork.schemas.common import CamelModel, MoneyFloat, UserSummaryOut, UtcDatetime
from mywork.schemas.duration_request import DurationRequestOut
from mywork.schemas.note import NoteOut
from mywork.schemas.photo import PhotoOut


class LineItemIn(CamelModel):
    title: str | None = None
    description: str | None = None
    quantity: int | None = None
    rate: Decimal | None = Field(default=None, ge=0)
    status: LineItemStatus | None = None


class JobCreateIn(CamelModel):
    title: str
    description: str | None = None
    scheduled_date: UtcDatetime
    start_date: UtcDatetime | None = None
    end_date: UtcDatetime | None = None
    duration: int | None = None
    customer_name: str | None = None
    customer_address: str | None = None
    customer_phone: str | None = None
    assigned_to_id: str | None = None
    assigned_to_email: EmailStr | None = None
    created_by_id: str | None = None
    created_by_email: EmailStr | None = None
    line_items: list[LineItemIn] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("title is required")
        return cleaned

    @field_validator("line_items", mode="before")
    @classmethod
    def null_line_items_as_empty(cls, value):
        return [] if value is None else value

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Interior Painting - Kitchen",
                "description": "Full kitchen interior painting project",
                "scheduledDate": "2026-10-20",
                "duration": 2,
                "customerName": "Mike Anderson",
                "customerAddress": "123 Oak Street, Pittsburgh, PA 15213",
                "customerPhone": "(412) 555-7890",
                "assignedToEmail": "john@example.com",
                "createdByEmail": "admin@example.com",
                "lineItems": [
                    {"title": "Wall Prep & Priming", "quantity": 1, "rate": 500},
                    {"title": "Crown Molding", "quantity": 40, "rate": 1.87},
                ],
            }
        }
    )


class JobUpdateIn(CamelModel):
    """Partial update; only fields present in the request body are applied."""

    title: str | None = None
    description: str | None = None
    status: JobStatus | None = None
    scheduled_date: UtcDatetime | None = None
    start_date: UtcDatetime | None = None
    end_date: UtcDatetime | None = None
    duration: int | None = None
    customer_name: str | None = None
    customer_address: str | None = None
    customer_phone: str | None = None
    assigned_to_id: str | None = None
    assigned_to_email: EmailStr | None = None
    line_items: list[LineItemIn] | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "in-progress",
                "duration": 3,
                "lineItems": [{"title": "Wall Painting", "quantity": 1, "rate": 750}],
            }
        }
    )


class LineItemOut(CamelModel):
    id: str
    job_id: str
    title: str
    description: str
    quantity: int
    rate: MoneyFloat
    total: MoneyFloat
    status: str
    created_at: UtcDatetime


class JobOut(CamelModel):
    id: str
    title: str
    description: str | None = None
    status: str
    scheduled_date: UtcDatetime
    start_date: UtcDatetime | None = None
    end_date: UtcDatetime | None = None
    duration: int
    customer_name: str | None = None
    customer_address: str | None = None
    customer_phone: str | None = None
    assigned_to_id: str
    created_by_id: str
    created_at: UtcDatetime
    updated_at: UtcDatetime
    assigned_to: UserSummaryOut
    line_items: list[LineItemOut]
    notes: list[NoteOut]
    photos: list[PhotoOut]
    service_alerts: list[ServiceAlertOut]
    has_pending_duration_request: bool


class JobDetailOut(JobOut):
    created_by: UserSummaryOut
    duration_change_requests: list[DurationRequestOut]
