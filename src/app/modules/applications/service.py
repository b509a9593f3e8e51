"""
Applications Service Layer

Business logic for job applications. Orchestrates the snapshot builder, the
section validator, the submission gate, the repository, the blob store,
audit events and confirmation emails.

This module implements:
1. Application lifecycle for applicants:
   - Create a draft (one per user and job) with a frozen job snapshot
   - Save section data and files while the application is unlocked
   - Validate a section or the whole application without mutating it
   - Submit (draft -> submitted, locked) and withdraw (submitted -> withdrawn)
   - Delete a draft

2. Review operations for admins and reviewers:
   - Status updates (single and bulk) through the status machine
   - Review notes and per-section verification
   - Listings, CSV export and dashboard counts

Consistency:
- Every mutation is a single commit; status, history entry and lock flag are
  written together.
- The version column detects concurrent writers. Section saves retry once
  against a fresh copy so saves to different sections never clobber each
  other; status changes report ConcurrentModificationError instead.
- Audit events, superseded file deletion and emails are best-effort and run
  after the commit; their failures are logged, never raised.
"""

import csv
import io
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.core.auth import CurrentUser
from app.core.config import settings
from app.core.email import send_application_confirmation
from app.core.storage import BlobStore
from app.modules.applications import repository
from app.modules.applications.credit_points import calculate_credit_points
from app.modules.applications.errors import (
    ApplicationDeadlinePassedError,
    ApplicationForbiddenError,
    ApplicationLockedError,
    ApplicationNotFoundError,
    ApplicationServiceError,
    ConcurrentModificationError,
    DuplicateApplicationError,
    FileNotFoundInSectionError,
    FileValidationError,
    InvalidApplicationStateError,
    InvalidStatusTransitionError,
    JobNotFoundError,
    JobNotPublishedError,
    SectionNotAllowedError,
    SectionNotFoundError,
    SectionValidationError,
    SubmissionBlockedError,
)
from app.modules.applications.models import Application, ApplicationStatus
from app.modules.applications.schemas import (
    BulkStatusUpdateResponse,
    CreditPointsSummary,
    DashboardStats,
    FieldError,
    JobSnapshot,
    SectionState,
    SectionValidationResponse,
    SubmissionCheckResponse,
    SubmitResponse,
    WithdrawResponse,
)
from app.modules.applications.section_schemas import FILE_ONLY_SECTIONS
from app.modules.applications.snapshot import build_snapshot
from app.modules.applications.submission import can_submit
from app.modules.applications.validation import (
    content_type_for,
    scan_for_malware,
    validate_section,
    validate_upload,
)
from app.modules.audit import AuditAction, record_event
from app.modules.audit.service import RequestContext
from app.modules.jobs import repository as job_repository
from app.modules.jobs.models import SectionType
from app.modules.jobs.schemas import SectionRequirement

logger = logging.getLogger(__name__)

__all__ = [
    "ApplicationDeadlinePassedError",
    "ApplicationForbiddenError",
    "ApplicationLockedError",
    "ApplicationNotFoundError",
    "ApplicationServiceError",
    "ConcurrentModificationError",
    "DuplicateApplicationError",
    "FileNotFoundInSectionError",
    "FileValidationError",
    "InvalidApplicationStateError",
    "InvalidStatusTransitionError",
    "JobNotFoundError",
    "JobNotPublishedError",
    "SectionNotAllowedError",
    "SectionNotFoundError",
    "SectionValidationError",
    "SubmissionBlockedError",
]

RESOURCE_TYPE = "application"
DEFAULT_WITHDRAW_REASON = "Application withdrawn by applicant"
MAX_SECTION_WRITE_ATTEMPTS = 2
MAX_CREATE_ATTEMPTS = 3
DUPLICATE_CONSTRAINT = "uq_applications_user_job"
MAX_PAGE_SIZE = 100


# ============================================
# Shared helpers
# ============================================


async def _get_application(db: AsyncSession, application_id: UUID) -> Application:
    application = await repository.get_by_id(db, application_id)
    if not application:
        logger.warning(f"Application not found: {application_id}")
        raise ApplicationNotFoundError(application_id)
    return application


def _ensure_can_view(application: Application, user: CurrentUser) -> None:
    """Applicants see their own applications; admins and reviewers see all."""
    if user.is_staff or application.user_id == user.id:
        return
    logger.warning(f"User {user.id} denied access to application {application.id}")
    raise ApplicationForbiddenError()


def _ensure_owner(application: Application, user: CurrentUser) -> None:
    if application.user_id != user.id:
        logger.warning(f"User {user.id} attempted to modify application {application.id}")
        raise ApplicationForbiddenError()


async def _get_owned_application(
    db: AsyncSession, application_id: UUID, user: CurrentUser
) -> Application:
    application = await _get_application(db, application_id)
    _ensure_owner(application, user)
    return application


def _snapshot(application: Application) -> JobSnapshot:
    return JobSnapshot.model_validate(application.job_snapshot)


def _requirement(application: Application, section_type: SectionType) -> SectionRequirement:
    """
    Raises:
        SectionNotAllowedError: If the job snapshot does not include the section
    """
    requirement = _snapshot(application).requirement_for(section_type)
    if requirement is None:
        raise SectionNotAllowedError(section_type.value)
    return requirement


def _ensure_unlocked(application: Application) -> None:
    if application.is_locked:
        logger.warning(f"Edit attempted on locked application {application.id}")
        raise ApplicationLockedError()


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


async def _write_section(
    db: AsyncSession,
    application: Application,
    section_type: SectionType,
    build_state: Callable[[dict], dict],
    *,
    check_lock: bool = True,
) -> dict:
    """
    Write one section, rebuilding it from the current stored state.

    On a version conflict the application is reloaded, the lock re-checked
    (applicant writes only) and the write retried once; a second conflict is
    reported to the caller.

    Returns:
        The stored section state
    """
    key = section_type.value

    for attempt in range(1, MAX_SECTION_WRITE_ATTEMPTS + 1):
        existing = (application.sections or {}).get(key) or {}
        state = build_state(dict(existing))
        try:
            application = await repository.set_section(db, application, key, state)
            return application.sections[key]
        except StaleDataError as e:
            await db.rollback()
            if attempt == MAX_SECTION_WRITE_ATTEMPTS:
                logger.error(f"Section {key} write conflicted twice on {application.id}")
                raise ConcurrentModificationError(application.id) from e
            logger.warning(f"Section {key} write conflicted on {application.id}, retrying")
            application = await repository.reload(db, application)
            if check_lock:
                _ensure_unlocked(application)

    raise ConcurrentModificationError(application.id)


# ============================================
# Applicant operations
# ============================================


async def create_application(
    db: AsyncSession,
    user: CurrentUser,
    job_id: UUID,
    context: RequestContext | None = None,
) -> Application:
    """
    Create a draft application for a published, open job.

    The job's configuration is snapshotted into the application. The unique
    (user, job) constraint is the final arbiter when two requests race.

    Raises:
        DuplicateApplicationError: If the user already applied for this job
        JobNotFoundError: If the job does not exist
        JobNotPublishedError: If the job is not published
        ApplicationDeadlinePassedError: If the application window has closed
    """
    logger.info(f"Creating application: user={user.id}, job={job_id}")

    if await repository.get_by_user_and_job(db, user.id, job_id):
        logger.warning(f"Duplicate application attempt: user={user.id}, job={job_id}")
        raise DuplicateApplicationError()

    snapshot = await build_snapshot(db, job_id)

    for attempt in range(1, MAX_CREATE_ATTEMPTS + 1):
        try:
            application = await repository.create(
                db, user_id=user.id, job_id=job_id, job_snapshot=snapshot
            )
            break
        except IntegrityError as e:
            await db.rollback()
            if DUPLICATE_CONSTRAINT in str(e.orig):
                logger.warning(f"Duplicate application race: user={user.id}, job={job_id}")
                raise DuplicateApplicationError() from e
            if attempt == MAX_CREATE_ATTEMPTS:
                raise
            logger.warning(f"Application number collision on attempt {attempt}, retrying")

    logger.info(f"Application created: {application.id} ({application.application_number})")

    await record_event(
        user_id=user.id,
        action=AuditAction.APPLICATION_CREATED,
        resource_type=RESOURCE_TYPE,
        resource_id=application.id,
        changes={
            "application_number": application.application_number,
            "job_id": str(job_id),
        },
        context=context,
    )
    return application


async def get_application(
    db: AsyncSession,
    application_id: UUID,
    user: CurrentUser,
) -> Application:
    """
    Raises:
        ApplicationNotFoundError: If the application does not exist
        ApplicationForbiddenError: If an applicant asks for someone else's application
    """
    application = await _get_application(db, application_id)
    _ensure_can_view(application, user)
    return application


async def list_my_applications(
    db: AsyncSession,
    user: CurrentUser,
    *,
    status: ApplicationStatus | None = None,
    job_id: UUID | None = None,
    skip: int = 0,
    limit: int = 20,
) -> dict:
    limit = min(max(1, limit), MAX_PAGE_SIZE)
    skip = max(0, skip)

    applications, total = await repository.list_for_user(
        db, user.id, status=status, job_id=job_id, skip=skip, limit=limit
    )
    return {"applications": applications, "total": total, "skip": skip, "limit": limit}


async def save_section_data(
    db: AsyncSession,
    application_id: UUID,
    user: CurrentUser,
    section_type: SectionType,
    data: dict,
) -> SectionState:
    """
    Validate and store a section's data payload.

    Existing file fields and verification fields are preserved. Nothing is
    written when validation fails.

    Raises:
        SectionNotAllowedError: If the section is not part of the job snapshot
        ApplicationLockedError: If the application is locked
        SectionValidationError: With every field error, if the data is invalid
    """
    application = await _get_owned_application(db, application_id, user)
    requirement = _requirement(application, section_type)
    _ensure_unlocked(application)

    errors = validate_section(section_type, data, requirement, _snapshot(application).custom_fields)
    if errors:
        logger.info(
            f"Section {section_type.value} rejected for {application_id}: {len(errors)} errors"
        )
        raise SectionValidationError(section_type.value, errors)

    def build_state(existing: dict) -> dict:
        return {**existing, "data": data, "saved_at": _now_iso(), "is_complete": True}

    state = await _write_section(db, application, section_type, build_state)
    logger.info(f"Section {section_type.value} saved for application {application_id}")
    return SectionState.model_validate(state)


async def save_section_file(
    db: AsyncSession,
    application_id: UUID,
    user: CurrentUser,
    section_type: SectionType,
    content: bytes,
    filename: str,
    blob_store: BlobStore,
) -> SectionState:
    """
    Store an uploaded file for a section.

    The new file is stored and recorded first; the file it replaces is then
    deleted best-effort.

    Raises:
        SectionNotAllowedError: If the section is not part of the job snapshot
        ApplicationLockedError: If the application is locked
        FileValidationError: If the file fails type, size or scan checks
    """
    application = await _get_owned_application(db, application_id, user)
    requirement = _requirement(application, section_type)
    _ensure_unlocked(application)

    errors = validate_upload(section_type, content, requirement)
    if errors:
        logger.info(f"Upload rejected for {application_id}/{section_type.value}: {errors}")
        raise FileValidationError(errors)

    if not await scan_for_malware(content):
        logger.warning(f"Upload failed malware scan for {application_id}/{section_type.value}")
        raise FileValidationError([FieldError(field="file", message="File failed security scan")])

    blob = await blob_store.store(
        content,
        folder=f"applications/{application.application_number}/{section_type.value}",
        filename=filename,
        content_type=content_type_for(section_type),
    )

    replaced: dict[str, str | None] = {}

    def build_state(existing: dict) -> dict:
        replaced["id"] = existing.get("file_storage_id")
        state = {
            **existing,
            "file_url": blob.url,
            "file_storage_id": blob.id,
            "saved_at": _now_iso(),
        }
        if section_type in FILE_ONLY_SECTIONS:
            state["is_complete"] = True
        return state

    try:
        state = await _write_section(db, application, section_type, build_state)
    except Exception:
        await _delete_blob_quietly(blob_store, blob.id)
        raise

    if replaced.get("id") and replaced["id"] != blob.id:
        await _delete_blob_quietly(blob_store, replaced["id"])

    logger.info(f"File stored for application {application_id}/{section_type.value}: {blob.id}")
    return SectionState.model_validate(state)


async def _delete_blob_quietly(blob_store: BlobStore, blob_id: str) -> None:
    try:
        await blob_store.delete(blob_id)
    except Exception as e:
        logger.error(f"Failed to delete stored file {blob_id}: {e}")


async def delete_section_file(
    db: AsyncSession,
    application_id: UUID,
    user: CurrentUser,
    section_type: SectionType,
    blob_store: BlobStore,
) -> None:
    """
    Clear a section's file fields, then delete the stored file.

    The stored file is only removed once the cleared state is committed.

    Raises:
        SectionNotAllowedError: If the section is not part of the job snapshot
        ApplicationLockedError: If the application is locked
        FileNotFoundInSectionError: If the section has no file
    """
    application = await _get_owned_application(db, application_id, user)
    _requirement(application, section_type)
    _ensure_unlocked(application)

    section = (application.sections or {}).get(section_type.value) or {}
    blob_id = section.get("file_storage_id")
    if not blob_id:
        raise FileNotFoundInSectionError(section_type.value)

    removed: dict[str, str | None] = {}

    def build_state(existing: dict) -> dict:
        removed["id"] = existing.get("file_storage_id")
        state = {**existing, "file_url": None, "file_storage_id": None, "saved_at": _now_iso()}
        if section_type in FILE_ONLY_SECTIONS:
            state["is_complete"] = False
        return state

    await _write_section(db, application, section_type, build_state)

    if removed.get("id"):
        await _delete_blob_quietly(blob_store, removed["id"])
    logger.info(f"File deleted for application {application_id}/{section_type.value}")


async def validate_saved_section(
    db: AsyncSession,
    application_id: UUID,
    user: CurrentUser,
    section_type: SectionType,
) -> SectionValidationResponse:
    """Re-check a section's stored state without changing it."""
    application = await get_application(db, application_id, user)
    requirement = _requirement(application, section_type)
    section = (application.sections or {}).get(section_type.value) or {}

    errors: list[FieldError] = []
    data = section.get("data")
    if data:
        errors.extend(
            validate_section(section_type, data, requirement, _snapshot(application).custom_fields)
        )
    elif requirement.is_mandatory and section_type not in FILE_ONLY_SECTIONS:
        errors.append(FieldError(field="data", message="Section data is required"))

    has_file = bool(section.get("file_url"))
    if requirement.requires_file and not has_file:
        errors.append(FieldError(field="pdf", message="PDF upload is required"))
    elif section_type in FILE_ONLY_SECTIONS and requirement.is_mandatory and not has_file:
        errors.append(FieldError(field="file", message="File upload is required"))

    return SectionValidationResponse(
        section_type=section_type, is_valid=not errors, errors=errors
    )


async def check_submission(
    db: AsyncSession,
    application_id: UUID,
    user: CurrentUser,
) -> SubmissionCheckResponse:
    """Run the submission gate without submitting."""
    application = await get_application(db, application_id, user)
    job = await job_repository.get_by_id(db, application.job_id)
    return can_submit(
        application, job, require_payment=settings.submission_requires_payment
    )


async def submit_application(
    db: AsyncSession,
    application_id: UUID,
    user: CurrentUser,
    context: RequestContext | None = None,
) -> SubmitResponse:
    """
    Submit a draft application.

    Raises:
        InvalidApplicationStateError: If the application is not a draft
        SubmissionBlockedError: With the gate's full error list
        ConcurrentModificationError: If the application changed meanwhile
    """
    application = await _get_owned_application(db, application_id, user)

    if application.status != ApplicationStatus.DRAFT:
        logger.warning(f"Submit attempted on {application_id} in status {application.status}")
        raise InvalidApplicationStateError(
            "Only draft applications can be submitted.",
            expected_state=ApplicationStatus.DRAFT.value,
        )

    job = await job_repository.get_by_id(db, application.job_id)
    result = can_submit(application, job, require_payment=settings.submission_requires_payment)
    if not result.can_submit:
        logger.info(f"Submission blocked for {application_id}: {len(result.errors)} errors")
        raise SubmissionBlockedError(result.errors)

    try:
        application = await repository.submit(db, application, changed_by=user.id)
    except StaleDataError as e:
        await db.rollback()
        raise ConcurrentModificationError(application_id) from e

    logger.info(f"Application submitted: {application.id} ({application.application_number})")

    await record_event(
        user_id=user.id,
        action=AuditAction.APPLICATION_SUBMITTED,
        resource_type=RESOURCE_TYPE,
        resource_id=application.id,
        changes={
            "before": {"status": ApplicationStatus.DRAFT.value},
            "after": {"status": ApplicationStatus.SUBMITTED.value},
        },
        context=context,
    )

    try:
        sent = await send_application_confirmation(
            to_email=user.email,
            applicant_name=user.name or user.email,
            application_number=application.application_number,
            job_title=_snapshot(application).title,
        )
        if not sent:
            logger.error(f"Failed to send confirmation email for application {application.id}")
    except Exception as e:
        logger.error(f"Exception sending confirmation email for application {application.id}: {e}")

    return SubmitResponse(
        application_number=application.application_number,
        submitted_at=application.submitted_at,
        status=application.status,
    )


async def withdraw_application(
    db: AsyncSession,
    application_id: UUID,
    user: CurrentUser,
    reason: str | None = None,
    context: RequestContext | None = None,
) -> WithdrawResponse:
    """
    Withdraw a submitted application. It stays locked.

    Raises:
        InvalidApplicationStateError: If the application is not submitted
    """
    application = await _get_owned_application(db, application_id, user)

    if application.status != ApplicationStatus.SUBMITTED:
        logger.warning(f"Withdraw attempted on {application_id} in status {application.status}")
        raise InvalidApplicationStateError(
            "Only submitted applications can be withdrawn.",
            expected_state=ApplicationStatus.SUBMITTED.value,
        )

    reason = reason or DEFAULT_WITHDRAW_REASON
    try:
        application = await repository.withdraw(db, application, changed_by=user.id, reason=reason)
    except StaleDataError as e:
        await db.rollback()
        raise ConcurrentModificationError(application_id) from e

    logger.info(f"Application withdrawn: {application.id}")

    await record_event(
        user_id=user.id,
        action=AuditAction.APPLICATION_WITHDRAWN,
        resource_type=RESOURCE_TYPE,
        resource_id=application.id,
        changes={
            "before": {"status": ApplicationStatus.SUBMITTED.value},
            "after": {"status": ApplicationStatus.WITHDRAWN.value},
            "reason": reason,
        },
        context=context,
    )
    return WithdrawResponse(
        application_number=application.application_number,
        status=application.status,
    )


async def delete_application(
    db: AsyncSession,
    application_id: UUID,
    user: CurrentUser,
    blob_store: BlobStore,
    context: RequestContext | None = None,
) -> None:
    """
    Delete a draft application owned by the user, then its stored files.

    Raises:
        InvalidApplicationStateError: If the application is not a draft
    """
    application = await _get_owned_application(db, application_id, user)

    if application.status != ApplicationStatus.DRAFT:
        raise InvalidApplicationStateError(
            "Only draft applications can be deleted.",
            expected_state=ApplicationStatus.DRAFT.value,
        )

    blob_ids = [
        section["file_storage_id"]
        for section in (application.sections or {}).values()
        if section and section.get("file_storage_id")
    ]
    application_number = application.application_number

    await repository.delete(db, application)
    logger.info(f"Application deleted: {application_id} ({application_number})")

    for blob_id in blob_ids:
        await _delete_blob_quietly(blob_store, blob_id)

    await record_event(
        user_id=user.id,
        action=AuditAction.APPLICATION_DELETED,
        resource_type=RESOURCE_TYPE,
        resource_id=application_id,
        changes={"application_number": application_number},
        context=context,
    )


async def get_credit_points_summary(
    db: AsyncSession,
    application_id: UUID,
    user: CurrentUser,
) -> CreditPointsSummary:
    application = await get_application(db, application_id, user)
    return calculate_credit_points(application.sections or {})


# ============================================
# Admin Service Functions
# ============================================


async def admin_list_applications(
    db: AsyncSession,
    *,
    job_id: UUID | None = None,
    status: ApplicationStatus | None = None,
    search: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    skip: int = 0,
    limit: int = 20,
) -> dict:
    """
    Paginated application list for the admin dashboard.

    Returns:
        Dict with applications list, total count, skip, and limit
    """
    logger.info(
        f"Admin listing applications: job={job_id}, status={status}, search={search}, "
        f"sort={sort_by}:{sort_order}, skip={skip}, limit={limit}"
    )

    limit = min(max(1, limit), MAX_PAGE_SIZE)
    skip = max(0, skip)

    applications, total = await repository.get_applications_for_admin(
        db,
        job_id=job_id,
        status=status,
        search=search,
        date_from=date_from,
        date_to=date_to,
        sort_by=sort_by,
        sort_order=sort_order,
        skip=skip,
        limit=limit,
    )
    return {"applications": applications, "total": total, "skip": skip, "limit": limit}


async def admin_list_applications_for_job(
    db: AsyncSession,
    job_id: UUID,
    *,
    status: ApplicationStatus | None = None,
    skip: int = 0,
    limit: int = 20,
) -> dict:
    """
    Raises:
        JobNotFoundError: If the job does not exist
    """
    if not await job_repository.get_by_id(db, job_id):
        raise JobNotFoundError(job_id)

    return await admin_list_applications(
        db, job_id=job_id, status=status, skip=skip, limit=limit
    )


async def admin_get_application(db: AsyncSession, application_id: UUID) -> Application:
    return await _get_application(db, application_id)


async def admin_update_status(
    db: AsyncSession,
    application_id: UUID,
    status: ApplicationStatus,
    admin: CurrentUser,
    remarks: str | None = None,
    context: RequestContext | None = None,
) -> Application:
    """
    Change an application's status.

    Raises:
        ApplicationNotFoundError: If the application does not exist
        InvalidStatusTransitionError: If leaving withdrawn for anything but submitted
        ConcurrentModificationError: If the application changed meanwhile
    """
    application = await _get_application(db, application_id)
    old_status = application.status

    try:
        application = await repository.update_status(
            db, application, status, changed_by=admin.id, remarks=remarks
        )
    except InvalidStatusTransitionError:
        logger.warning(f"Rejected status change {old_status.value} -> {status.value}")
        raise
    except StaleDataError as e:
        await db.rollback()
        raise ConcurrentModificationError(application_id) from e

    logger.info(
        f"Application {application_id} status {old_status.value} -> {status.value} "
        f"by {admin.id}"
    )

    await record_event(
        user_id=admin.id,
        action=AuditAction.APPLICATION_STATUS_CHANGED,
        resource_type=RESOURCE_TYPE,
        resource_id=application.id,
        changes={
            "before": {"status": old_status.value},
            "after": {"status": status.value},
            "remarks": remarks,
        },
        context=context,
    )
    return application


async def admin_bulk_update_status(
    db: AsyncSession,
    application_ids: list[UUID],
    status: ApplicationStatus,
    admin: CurrentUser,
    remarks: str | None = None,
    context: RequestContext | None = None,
) -> BulkStatusUpdateResponse:
    """
    Apply one status to many applications atomically.

    Unknown ids are skipped, not reported as errors. A version conflict rolls
    back the whole batch, which is then retried once.
    """
    unique_ids = list(dict.fromkeys(application_ids))

    for attempt in range(1, MAX_SECTION_WRITE_ATTEMPTS + 1):
        try:
            modified = await repository.bulk_update_status(
                db, unique_ids, status, changed_by=admin.id, remarks=remarks
            )
            break
        except StaleDataError as e:
            await db.rollback()
            if attempt == MAX_SECTION_WRITE_ATTEMPTS:
                raise ConcurrentModificationError() from e
            logger.warning("Bulk status update conflicted, retrying batch")

    logger.info(
        f"Bulk status update to {status.value} by {admin.id}: "
        f"{modified}/{len(application_ids)} modified"
    )

    await record_event(
        user_id=admin.id,
        action=AuditAction.APPLICATION_BULK_STATUS_CHANGED,
        resource_type=RESOURCE_TYPE,
        changes={
            "application_ids": [str(i) for i in unique_ids],
            "new_status": status.value,
            "remarks": remarks,
            "modified_count": modified,
        },
        context=context,
    )
    return BulkStatusUpdateResponse(
        modified_count=modified,
        requested_count=len(application_ids),
    )


async def admin_add_review_notes(
    db: AsyncSession,
    application_id: UUID,
    review_notes: str,
    reviewer: CurrentUser,
    context: RequestContext | None = None,
) -> Application:
    """Record review notes. Status and history are not touched."""
    application = await _get_application(db, application_id)

    try:
        application = await repository.set_review_notes(db, application, review_notes, reviewer.id)
    except StaleDataError as e:
        await db.rollback()
        raise ConcurrentModificationError(application_id) from e

    logger.info(f"Review notes added to application {application_id} by {reviewer.id}")

    await record_event(
        user_id=reviewer.id,
        action=AuditAction.APPLICATION_REVIEW_NOTES_ADDED,
        resource_type=RESOURCE_TYPE,
        resource_id=application.id,
        changes={"review_notes": review_notes},
        context=context,
    )
    return application


async def admin_verify_section(
    db: AsyncSession,
    application_id: UUID,
    section_type: SectionType,
    is_verified: bool,
    reviewer: CurrentUser,
    notes: str | None = None,
    context: RequestContext | None = None,
) -> SectionState:
    """
    Mark a section's documents as verified (or not), regardless of lock and status.

    Raises:
        SectionNotFoundError: If the application has no state for the section
    """
    application = await _get_application(db, application_id)

    if section_type.value not in (application.sections or {}):
        raise SectionNotFoundError(section_type.value)

    def build_state(existing: dict) -> dict:
        return {
            **existing,
            "is_verified": is_verified,
            "verified_by": str(reviewer.id),
            "verified_at": _now_iso(),
            "verification_notes": notes,
        }

    state = await _write_section(db, application, section_type, build_state, check_lock=False)
    logger.info(
        f"Section {section_type.value} of {application_id} verification={is_verified} "
        f"by {reviewer.id}"
    )

    await record_event(
        user_id=reviewer.id,
        action=AuditAction.APPLICATION_SECTION_VERIFIED,
        resource_type=RESOURCE_TYPE,
        resource_id=application_id,
        changes={"section": section_type.value, "is_verified": is_verified, "notes": notes},
        context=context,
    )
    return SectionState.model_validate(state)


EXPORT_HEADERS = [
    "Application Number",
    "Applicant Email",
    "Applicant Name",
    "Job Title",
    "Advertisement No",
    "Status",
    "Submitted At",
    "Created At",
]


async def admin_export_csv(
    db: AsyncSession,
    *,
    job_id: UUID | None = None,
    status: ApplicationStatus | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> str:
    """Filtered applications as CSV text."""
    rows = await repository.get_applications_for_export(
        db, job_id=job_id, status=status, date_from=date_from, date_to=date_to
    )

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_HEADERS)
    for application, user in rows:
        snapshot = application.job_snapshot or {}
        writer.writerow(
            [
                application.application_number,
                user.email,
                user.full_name,
                snapshot.get("title", ""),
                snapshot.get("advertisement_no", ""),
                application.status.value,
                application.submitted_at.isoformat() if application.submitted_at else "",
                application.created_at.isoformat(),
            ]
        )

    logger.info(f"Exported {len(rows)} applications")
    return buffer.getvalue()


async def admin_get_dashboard_stats(db: AsyncSession) -> DashboardStats:
    counts = await repository.get_status_counts(db)
    return DashboardStats(total=sum(counts.values()), by_status=counts)
