"""
Job Posting Models

A job posting declares the ordered set of application sections and ad hoc
custom fields an applicant must complete. Applications copy this
configuration once, at creation time.
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, String, Text
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel


class JobStatus(str, enum.Enum):
    """Publication status of a job posting."""

    DRAFT = "draft"
    PUBLISHED = "published"
    CLOSED = "closed"
    ARCHIVED = "archived"


class SectionType(str, enum.Enum):
    """Fixed vocabulary of application section types."""

    PERSONAL = "personal"
    PHOTO = "photo"
    SIGNATURE = "signature"
    EDUCATION = "education"
    EXPERIENCE = "experience"
    PUBLICATIONS_JOURNAL = "publications_journal"
    PUBLICATIONS_CONFERENCE = "publications_conference"
    PHD_SUPERVISION = "phd_supervision"
    PATENTS = "patents"
    PUBLICATIONS_BOOKS = "publications_books"
    ORGANIZED_PROGRAMS = "organized_programs"
    SPONSORED_PROJECTS = "sponsored_projects"
    CONSULTANCY_PROJECTS = "consultancy_projects"
    SUBJECTS_TAUGHT = "subjects_taught"
    CREDIT_POINTS = "credit_points"
    REFEREES = "referees"
    OTHER_INFO = "other_info"
    FINAL_DOCUMENTS = "final_documents"
    DECLARATION = "declaration"
    CUSTOM = "custom"


class CustomFieldType(str, enum.Enum):
    """Value types supported by admin-defined custom fields."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    DROPDOWN = "dropdown"


class Job(BaseModel):
    """
    Job posting.

    required_sections and custom_fields are stored as JSON lists of
    SectionRequirement / CustomFieldDefinition dicts.
    """

    __tablename__ = "jobs"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    advertisement_no: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    department: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[JobStatus] = mapped_column(
        Enum(JobStatus, name="job_status"),
        nullable=False,
        default=JobStatus.DRAFT,
    )

    application_start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    application_end_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    required_sections: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    custom_fields: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_jobs_status", "status"),
        Index("ix_jobs_application_end_date", "application_end_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Job(id={self.id}, advertisement_no={self.advertisement_no}, "
            f"status={self.status})>"
        )
