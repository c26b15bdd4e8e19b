from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mywork.core.enums import DurationRequestStatus
from mywork.core.id_utils import generate_shortuuid
from mywork.db.base import Base, utc_now
from mywork.models.job import Job
from mywork.models.user import User


class DurationChangeRequest(Base):
    __tablename__ = "duration_change_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_shortuuid)
    job_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    requested_by_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    current_duration: Mapped[int] = mapped_column(Integer, nullable=False)
    requested_duration: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=DurationRequestStatus.PENDING.value,
        server_default=DurationRequestStatus.PENDING.value,
    )
    reviewed_by_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now()
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    job: Mapped[Job] = relationship(back_populates="duration_change_requests")
    requested_by: Mapped[User] = relationship(User, foreign_keys=[requested_by_id])
    reviewed_by: Mapped[Optional[User]] = relationship(User, foreign_keys=[reviewed_by_id])

    __table_args__ = (
        Index("ix_duration_requests_job_status", "job_id", "status"),
    )
