from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mywork.core.enums import AlertSeverity
from mywork.core.id_utils import generate_shortuuid
from mywork.db.base import Base, utc_now
from mywork.models.job import Job


class ServiceAlert(Base):
    __tablename__ = "service_alerts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_shortuuid)
    job_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    severity: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AlertSeverity.NORMAL.value,
        server_default=AlertSeverity.NORMAL.value,
    )
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now()
    )

    job: Mapped[Job] = relationship(back_populates="service_alerts")

    __table_args__ = (
        Index("ix_service_alerts_job_sent_at", "job_id", "sent_at"),
    )
