"""
Application Service Errors

Every error carries an error code and HTTP status code so routers can map it
without knowing the individual classes. Validation-style errors also carry the
full list of field errors.
"""

from uuid import UUID

from app.modules.applications.schemas import FieldError


class ApplicationServiceError(Exception):
    """Base exception for application service errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 400,
        errors: list[FieldError] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.errors = errors
        super().__init__(message)


# ============================================
# Not found
# ============================================


class ApplicationNotFoundError(ApplicationServiceError):
    """Raised when an application is not found."""

    def __init__(self, application_id: UUID | None = None):
        message = (
            f"Application {application_id} not found" if application_id else "Application not found"
        )
        super().__init__(message=message, error_code="APPLICATION_NOT_FOUND", status_code=404)


class JobNotFoundError(ApplicationServiceError):
    """Raised when the job an application refers to does not exist."""

    def __init__(self, job_id: UUID | None = None):
        message = f"Job {job_id} not found" if job_id else "Job not found"
        super().__init__(message=message, error_code="JOB_NOT_FOUND", status_code=404)


class SectionNotFoundError(ApplicationServiceError):
    """Raised when an application has no saved state for a section."""

    def __init__(self, section_type: str):
        super().__init__(
            message=f"Section '{section_type}' not found in application",
            error_code="SECTION_NOT_FOUND",
            status_code=404,
        )


class FileNotFoundInSectionError(ApplicationServiceError):
    """Raised when deleting a file from a section that has none."""

    def __init__(self, section_type: str):
        super().__init__(
            message=f"No file uploaded for section '{section_type}'",
            error_code="FILE_NOT_FOUND",
            status_code=404,
        )


# ============================================
# Conflicts and access
# ============================================


class DuplicateApplicationError(ApplicationServiceError):
    """Raised when the user already applied for the job."""

    def __init__(self, message: str = "Application already exists for this job"):
        super().__init__(message=message, error_code="DUPLICATE_APPLICATION", status_code=409)


class ApplicationForbiddenError(ApplicationServiceError):
    """Raised when a user acts on an application they do not own."""

    def __init__(self, message: str = "You do not have access to this application"):
        super().__init__(message=message, error_code="FORBIDDEN", status_code=403)


# ============================================
# State errors
# ============================================


class InvalidApplicationStateError(ApplicationServiceError):
    """Raised when an application is not in the expected state for an operation."""

    def __init__(self, message: str, expected_state: str | None = None):
        detail = message
        if expected_state:
            detail = f"{message} Expected state: {expected_state}"
        super().__init__(
            message=detail,
            error_code="INVALID_APPLICATION_STATE",
            status_code=409,
        )


class ApplicationLockedError(ApplicationServiceError):
    """Raised when an applicant edits a locked (submitted) application."""

    def __init__(self):
        super().__init__(
            message="Application is locked and cannot be edited",
            error_code="APPLICATION_LOCKED",
            status_code=409,
        )


class InvalidStatusTransitionError(ApplicationServiceError):
    """Raised when a status change is not allowed by the state machine."""

    def __init__(self, current_status: str, new_status: str, message: str | None = None):
        self.current_status = current_status
        self.new_status = new_status
        super().__init__(
            message=message or f"Invalid status transition: {current_status} -> {new_status}",
            error_code="INVALID_STATUS_TRANSITION",
            status_code=409,
        )


class JobNotPublishedError(ApplicationServiceError):
    """Raised when applying for a job that is not published."""

    def __init__(self):
        super().__init__(
            message="Job is not published",
            error_code="JOB_NOT_PUBLISHED",
            status_code=409,
        )


class ApplicationDeadlinePassedError(ApplicationServiceError):
    """Raised when applying for a job after its application end date."""

    def __init__(self):
        super().__init__(
            message="Application deadline has passed",
            error_code="APPLICATION_DEADLINE_PASSED",
            status_code=409,
        )


class ConcurrentModificationError(ApplicationServiceError):
    """Raised when the application changed between read and write."""

    def __init__(self, application_id: UUID | None = None):
        subject = f"Application {application_id}" if application_id else "An application"
        super().__init__(
            message=(
                f"{subject} was modified by another request. Please reload and try again."
            ),
            error_code="CONCURRENT_MODIFICATION",
            status_code=409,
        )


# ============================================
# Validation errors
# ============================================


class SectionNotAllowedError(ApplicationServiceError):
    """Raised when a section is not part of the application's job snapshot."""

    def __init__(self, section_type: str):
        super().__init__(
            message=f"Section '{section_type}' is not required for this job",
            error_code="SECTION_NOT_ALLOWED",
            status_code=400,
        )


class SectionValidationError(ApplicationServiceError):
    """Raised when section data fails validation; nothing is saved."""

    def __init__(self, section_type: str, errors: list[FieldError]):
        super().__init__(
            message=f"Validation failed for section '{section_type}'",
            error_code="SECTION_VALIDATION_FAILED",
            status_code=422,
            errors=errors,
        )


class FileValidationError(ApplicationServiceError):
    """Raised when an uploaded file fails type, size or scan checks."""

    def __init__(self, errors: list[FieldError]):
        super().__init__(
            message=errors[0].message if errors else "File validation failed",
            error_code="FILE_VALIDATION_FAILED",
            status_code=400,
            errors=errors,
        )


class SubmissionBlockedError(ApplicationServiceError):
    """Raised when the submission gate reports errors."""

    def __init__(self, errors: list[FieldError]):
        super().__init__(
            message="Application cannot be submitted. Please fix the listed errors.",
            error_code="SUBMISSION_BLOCKED",
            status_code=422,
            errors=errors,
        )
