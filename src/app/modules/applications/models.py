"""
Application Models

An application belongs to one user and one job. It carries a frozen copy of
the job's section configuration, a map of per-section state, and an
append-only status history.
"""

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.modules.shared import BaseModel

if TYPE_CHECKING:
    from app.modules.users.models import User


class ApplicationStatus(str, enum.Enum):
    """Lifecycle status of an application."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    SHORTLISTED = "shortlisted"
    REJECTED = "rejected"
    SELECTED = "selected"
    WITHDRAWN = "withdrawn"


class PaymentStatus(str, enum.Enum):
    """Application fee status, written by the payment webhook handler."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    EXEMPTED = "exempted"


class Application(BaseModel):
    """
    Job application.

    JSON columns:
    - job_snapshot: {title, advertisement_no, department, required_sections, custom_fields}
    - sections: {section_type: {data, file_url, file_storage_id, saved_at, is_complete,
      is_verified, verified_by, verified_at, verification_notes}}
    - status_history: [{status, changed_by, changed_at, remarks}, ...]

    JSON values are always reassigned (never mutated in place) so SQLAlchemy
    detects the change. `version` is bumped on every UPDATE and checked by the
    ORM, so a write based on a stale read raises StaleDataError.
    """

    __tablename__ = "applications"

    application_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    # No FK: the job may be edited or removed, the snapshot stays authoritative
    job_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    job_snapshot: Mapped[dict] = mapped_column(JSON, nullable=False)

    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, name="application_status"),
        nullable=False,
        default=ApplicationStatus.DRAFT,
    )
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    sections: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    status_history: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status"),
        nullable=False,
        default=PaymentStatus.PENDING,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="applications")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint("user_id", "job_id", name="uq_applications_user_job"),
        Index("ix_applications_status", "status"),
        Index("ix_applications_job_id", "job_id"),
        Index("ix_applications_user_id", "user_id"),
        Index("ix_applications_submitted_at", "submitted_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Application(id={self.id}, number={self.application_number}, "
            f"status={self.status})>"
        )
