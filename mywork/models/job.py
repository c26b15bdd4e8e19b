from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mywork.core.enums import DurationRequestStatus, JobStatus, LineItemStatus
from mywork.core.id_utils import generate_shortuuid
from mywork.db.base import Base, utc_now
from mywork.models.user import User

if TYPE_CHECKING:
    from mywork.models.duration_change_request import DurationChangeRequest
    from mywork.models.note import Note
    from mywork.models.photo import Photo
    from mywork.models.service_alert import ServiceAlert


class Job(Base):
    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_shortuuid)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=JobStatus.PENDING.value,
        server_default=JobStatus.PENDING.value,
    )
    scheduled_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    customer_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    customer_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    assigned_to_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    created_by_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now(), onupdate=utc_now
    )

    assigned_to: Mapped[User] = relationship(User, foreign_keys=[assigned_to_id])
    created_by: Mapped[User] = relationship(User, foreign_keys=[created_by_id])
    line_items: Mapped[list["LineItem"]] = relationship(
        back_populates="job",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="LineItem.position",
    )
    notes: Mapped[list["Note"]] = relationship(
        back_populates="job",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Note.created_at",
    )
    photos: Mapped[list["Photo"]] = relationship(
        back_populates="job",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Photo.timestamp",
    )
    service_alerts: Mapped[list["ServiceAlert"]] = relationship(
        back_populates="job",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ServiceAlert.sent_at",
    )
    duration_change_requests: Mapped[list["DurationChangeRequest"]] = relationship(
        back_populates="job",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DurationChangeRequest.created_at",
    )

    __table_args__ = (
        Index("ix_jobs_status_scheduled_date", "status", "scheduled_date"),
        Index("ix_jobs_assignee_scheduled_date", "assigned_to_id", "scheduled_date"),
    )

    @property
    def has_pending_duration_request(self) -> bool:
        return any(
            request.status == DurationRequestStatus.PENDING.value
            for request in self.duration_change_requests
        )


class LineItem(Base):
    __tablename__ = "line_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_shortuuid)
    job_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    rate: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=LineItemStatus.PENDING.value,
        server_default=LineItemStatus.PENDING.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now()
    )

    job: Mapped[Job] = relationship(back_populates="line_items")
