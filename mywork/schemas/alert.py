from pydantic import ConfigDict, field_validator

from mywork.core.enums import AlertSeverity
from mywork.schemas.common import CamelModel, UtcDatetime


class ServiceAlertCreateIn(CamelModel):
    title: str
    description: str | None = None
    severity: AlertSeverity = AlertSeverity.NORMAL

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("title is required")
        return cleaned

    @field_validator("description")
    @classmethod
    def normalize_description(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Service Issue Report",
                "description": "Water damage found behind the vanity.",
                "severity": "urgent",
            }
        }
    )


class ServiceAlertOut(CamelModel):
    id: str
    job_id: str
    title: str
    description: str | None = None
    severity: str
    sent_at: UtcDatetime
