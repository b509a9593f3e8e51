"""
Application Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.modules.applications.models import Application, ApplicationStatus, PaymentStatus
from app.modules.jobs.models import SectionType
from app.modules.jobs.schemas import CustomFieldDefinition, SectionRequirement


class FieldError(BaseModel):
    """A single validation failure. `section` is set by the submission gate."""

    model_config = ConfigDict(frozen=True)

    section: str | None = None
    field: str
    message: str


# ============================================
# Stored value types
# ============================================


class JobSnapshot(BaseModel):
    """Frozen copy of a job's requirements, taken when the application is created."""

    title: str
    advertisement_no: str
    department: str
    required_sections: list[SectionRequirement]
    custom_fields: list[CustomFieldDefinition] = Field(default_factory=list)

    def requirement_for(self, section_type: SectionType) -> SectionRequirement | None:
        for requirement in self.required_sections:
            if requirement.section_type == section_type:
                return requirement
        return None


class SectionState(BaseModel):
    """Per-section state stored in Application.sections."""

    data: dict[str, Any] | None = None
    file_url: str | None = None
    file_storage_id: str | None = None
    saved_at: datetime | None = None
    is_complete: bool = False
    is_verified: bool = False
    verified_by: UUID | None = None
    verified_at: datetime | None = None
    verification_notes: str | None = None


class StatusHistoryEntry(BaseModel):
    status: ApplicationStatus
    changed_by: UUID | None = None
    changed_at: datetime
    remarks: str | None = None


# ============================================
# Applicant Request Schemas
# ============================================


class ApplicationCreate(BaseModel):
    """Request body for POST /applications."""

    job_id: UUID


class SectionDataSave(BaseModel):
    """Request body for saving a section's data payload."""

    data: dict[str, Any] = Field(..., description="Section payload; shape depends on section type")


class WithdrawRequest(BaseModel):
    reason: str | None = Field(
        None,
        min_length=10,
        max_length=500,
        description="Why the application is being withdrawn",
    )


# ============================================
# Applicant Response Schemas
# ============================================


class SectionSaveResponse(BaseModel):
    section_type: SectionType
    section: SectionState
    message: str = "Section saved successfully"


class SectionValidationResponse(BaseModel):
    section_type: SectionType
    is_valid: bool
    errors: list[FieldError]


class SubmissionCheckResponse(BaseModel):
    can_submit: bool
    errors: list[FieldError]


class SubmitResponse(BaseModel):
    application_number: str
    submitted_at: datetime
    status: ApplicationStatus
    message: str = "Application submitted successfully"


class WithdrawResponse(BaseModel):
    application_number: str
    status: ApplicationStatus
    message: str = "Application withdrawn successfully"


class ApplicationResponse(BaseModel):
    """Complete application, as seen by its owner or an admin."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_number: str
    user_id: UUID
    job_id: UUID
    job_snapshot: JobSnapshot
    status: ApplicationStatus
    submitted_at: datetime | None = None
    is_locked: bool
    locked_at: datetime | None = None
    sections: dict[SectionType, SectionState]
    status_history: list[StatusHistoryEntry]
    review_notes: str | None = None
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None
    payment_status: PaymentStatus
    created_at: datetime
    updated_at: datetime


class ApplicationSummary(BaseModel):
    """Application list item."""

    id: UUID
    application_number: str
    user_id: UUID
    job_id: UUID
    job_title: str
    advertisement_no: str
    status: ApplicationStatus
    is_locked: bool
    payment_status: PaymentStatus
    submitted_at: datetime | None = None
    created_at: datetime

    @classmethod
    def from_application(cls, application: Application) -> "ApplicationSummary":
        snapshot = application.job_snapshot or {}
        return cls(
            id=application.id,
            application_number=application.application_number,
            user_id=application.user_id,
            job_id=application.job_id,
            job_title=snapshot.get("title", ""),
            advertisement_no=snapshot.get("advertisement_no", ""),
            status=application.status,
            is_locked=application.is_locked,
            payment_status=application.payment_status,
            submitted_at=application.submitted_at,
            created_at=application.created_at,
        )


class ApplicationListResponse(BaseModel):
    applications: list[ApplicationSummary]
    total: int
    skip: int
    limit: int


class CreditPointsSummary(BaseModel):
    """Credit points derived from saved sections plus manual claims."""

    sponsored_projects: float = 0
    consultancy_projects: float = 0
    phd_supervision: float = 0
    publications_journal: float = 0
    patents: float = 0
    auto_total: float = 0
    manual_total: float = 0
    grand_total: float = 0


# ============================================
# Admin Request Schemas
# ============================================


class StatusUpdateRequest(BaseModel):
    status: ApplicationStatus
    remarks: str | None = Field(None, max_length=500)


class BulkStatusUpdateRequest(BaseModel):
    application_ids: list[UUID] = Field(..., min_length=1, max_length=100)
    status: ApplicationStatus
    remarks: str | None = Field(None, max_length=500)


class ReviewNotesRequest(BaseModel):
    review_notes: str = Field(..., min_length=1, max_length=2000)


class VerifySectionRequest(BaseModel):
    is_verified: bool
    notes: str | None = Field(None, max_length=1000)


# ============================================
# Admin Response Schemas
# ============================================


class BulkStatusUpdateResponse(BaseModel):
    modified_count: int
    requested_count: int
    message: str = "Bulk status update completed"


class DashboardStats(BaseModel):
    """Application counts per status."""

    total: int
    by_status: dict[ApplicationStatus, int]
