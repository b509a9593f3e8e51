"""
Job Posting Schemas

Pydantic schemas for job authoring and the value types embedded in a job
(and copied into every application's snapshot).
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.modules.jobs.models import CustomFieldType, JobStatus, SectionType


class SectionRequirement(BaseModel):
    """One section an applicant must (or may) fill for a job."""

    section_type: SectionType
    is_mandatory: bool = True
    requires_file: bool = False
    file_label: str | None = Field(None, max_length=200)
    max_file_size_mb: int | None = Field(None, ge=1, le=50)
    instructions: str | None = Field(None, max_length=2000)

    @model_validator(mode="after")
    def validate_file_label(self) -> "SectionRequirement":
        if self.requires_file and not self.file_label:
            raise ValueError(
                f"file_label is required when section '{self.section_type.value}' requires a file"
            )
        return self


class CustomFieldDefinition(BaseModel):
    """Admin-defined ad hoc field validated inside the `custom` section."""

    field_name: str = Field(..., min_length=1, max_length=100)
    field_type: CustomFieldType
    options: list[str] = Field(default_factory=list)
    is_mandatory: bool = False
    section: str = Field(SectionType.CUSTOM.value, max_length=50)

    @model_validator(mode="after")
    def validate_options(self) -> "CustomFieldDefinition":
        if self.field_type == CustomFieldType.DROPDOWN and not self.options:
            raise ValueError(f"Dropdown field '{self.field_name}' must define options")
        return self


class JobCreate(BaseModel):
    """Request body for POST /admin/jobs."""

    title: str = Field(..., min_length=3, max_length=200)
    advertisement_no: str = Field(..., min_length=1, max_length=100)
    department: str = Field(..., min_length=2, max_length=200)
    description: str | None = Field(None, max_length=10000)
    application_start_date: datetime
    application_end_date: datetime
    required_sections: list[SectionRequirement] = Field(..., min_length=1)
    custom_fields: list[CustomFieldDefinition] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_job(self) -> "JobCreate":
        if self.application_end_date <= self.application_start_date:
            raise ValueError("application_end_date must be after application_start_date")

        seen: set[SectionType] = set()
        for requirement in self.required_sections:
            if requirement.section_type in seen:
                raise ValueError(
                    f"Section '{requirement.section_type.value}' is listed more than once"
                )
            seen.add(requirement.section_type)

        field_names = [field.field_name for field in self.custom_fields]
        if len(field_names) != len(set(field_names)):
            raise ValueError("Custom field names must be unique")

        return self


class JobResponse(BaseModel):
    """Job posting as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    advertisement_no: str
    department: str
    description: str | None = None
    status: JobStatus
    application_start_date: datetime
    application_end_date: datetime
    required_sections: list[SectionRequirement]
    custom_fields: list[CustomFieldDefinition]
    published_at: datetime | None = None
    closed_at: datetime | None = None
    created_at: datetime


class JobListResponse(BaseModel):
    """Paginated list of jobs."""

    jobs: list[JobResponse]
    total: int
    skip: int
    limit: int
