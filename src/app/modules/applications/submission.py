"""
Submission Gate

Aggregates every reason an application cannot be submitted yet. Section rules
come from the application's frozen job snapshot; the deadline comes from the
live job, so a closed or expired posting blocks submission even though the
snapshot is unchanged.

Nothing here raises for validation failures: every problem is collected so
the client can show a complete checklist.
"""

from datetime import UTC, datetime

from app.modules.applications.models import Application, ApplicationStatus, PaymentStatus
from app.modules.applications.schemas import FieldError, JobSnapshot, SubmissionCheckResponse
from app.modules.applications.section_schemas import FILE_ONLY_SECTIONS
from app.modules.applications.validation import validate_section
from app.modules.jobs.models import Job, JobStatus

SETTLED_PAYMENT_STATUSES = frozenset({PaymentStatus.PAID, PaymentStatus.EXEMPTED})


def _state_errors(application: Application) -> list[FieldError]:
    errors = []
    if application.status != ApplicationStatus.DRAFT:
        errors.append(
            FieldError(
                field="status",
                message=(
                    "Application cannot be submitted. "
                    f"Current status: {ApplicationStatus(application.status).value}"
                ),
            )
        )
    if application.is_locked:
        errors.append(
            FieldError(
                field="isLocked",
                message="Application is locked and cannot be submitted",
            )
        )
    return errors


def section_errors(application: Application) -> list[FieldError]:
    """Mandatory-section completeness and data validity, against the snapshot."""
    snapshot = JobSnapshot.model_validate(application.job_snapshot)
    sections = application.sections or {}
    errors: list[FieldError] = []

    for requirement in snapshot.required_sections:
        if not requirement.is_mandatory:
            continue

        name = requirement.section_type.value
        section = sections.get(name) or {}
        data = section.get("data")

        if requirement.section_type in FILE_ONLY_SECTIONS:
            if not section.get("file_url"):
                errors.append(
                    FieldError(
                        section=name,
                        field="file",
                        message=f"{name} file upload is required",
                    )
                )
            continue

        if not data:
            errors.append(
                FieldError(
                    section=name,
                    field="data",
                    message=f"Section '{name}' is required but not completed",
                )
            )

        if requirement.requires_file and not section.get("file_url"):
            errors.append(
                FieldError(
                    section=name,
                    field="pdf",
                    message=f"{requirement.file_label or 'PDF'} upload is required",
                )
            )

        if data:
            for error in validate_section(
                requirement.section_type, data, requirement, snapshot.custom_fields
            ):
                errors.append(error.model_copy(update={"section": name}))

    return errors


def deadline_errors(job: Job | None, now: datetime | None = None) -> list[FieldError]:
    """Live check of the job's publication status and application window."""
    if job is None:
        message = "Job not found"
    elif job.status != JobStatus.PUBLISHED:
        message = "Job is not accepting applications"
    elif (now or datetime.now(UTC)) > job.application_end_date:
        message = "Application deadline has passed"
    else:
        return []
    return [FieldError(field="deadline", message=message)]


def can_submit(
    application: Application,
    job: Job | None,
    *,
    require_payment: bool = False,
    now: datetime | None = None,
) -> SubmissionCheckResponse:
    """
    Decide whether an application can be submitted.

    Args:
        application: The application, with its snapshot and sections loaded
        job: The live job the application was made for (None if it no longer exists)
        require_payment: Also require a settled payment status
        now: Reference time for the deadline check

    Returns:
        can_submit plus the full list of errors in check order
    """
    errors = _state_errors(application)

    if require_payment and application.payment_status not in SETTLED_PAYMENT_STATUSES:
        errors.append(
            FieldError(field="payment", message="Please complete payment before submitting")
        )

    errors.extend(section_errors(application))
    errors.extend(deadline_errors(job, now))

    return SubmissionCheckResponse(can_submit=not errors, errors=errors)
