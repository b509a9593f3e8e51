"""
Applications Repository

Database operations for job applications. Functions that mutate an
application commit before returning, so each one is a single transaction:
a status change, its history entry and the lock flag are always written
together.

JSON columns are reassigned with new containers on every write; in-place
mutation would not be detected by SQLAlchemy.
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import asc, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.users.models import User

from .errors import InvalidStatusTransitionError
from .helpers import generate_application_number, utc_isoformat
from .models import Application, ApplicationStatus

# Admin-driven status machine. Any status may move to any other, except that
# re-activation (back to submitted) is the only way out of withdrawn.
_ALL_STATUSES = frozenset(ApplicationStatus)

VALID_STATUS_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    status: _ALL_STATUSES for status in ApplicationStatus
}
VALID_STATUS_TRANSITIONS[ApplicationStatus.WITHDRAWN] = frozenset({ApplicationStatus.SUBMITTED})

SORTABLE_COLUMNS = {"created_at", "submitted_at", "application_number"}


def is_transition_allowed(current: ApplicationStatus, new: ApplicationStatus) -> bool:
    return new in VALID_STATUS_TRANSITIONS.get(current, frozenset())


def validate_transition(current: ApplicationStatus, new: ApplicationStatus) -> None:
    """
    Raises:
        InvalidStatusTransitionError: If the admin status machine forbids the change
    """
    if is_transition_allowed(current, new):
        return
    message = None
    if current == ApplicationStatus.WITHDRAWN:
        message = "Withdrawn applications cannot be transitioned to this status"
    raise InvalidStatusTransitionError(current.value, new.value, message)


def history_entry(
    status: ApplicationStatus,
    changed_by: UUID | None,
    remarks: str | None,
    changed_at: datetime | None = None,
) -> dict:
    return {
        "status": status.value,
        "changed_by": str(changed_by) if changed_by else None,
        "changed_at": utc_isoformat(changed_at),
        "remarks": remarks,
    }


def _append_history(application: Application, entry: dict) -> None:
    application.status_history = [*(application.status_history or []), entry]


# ============================================
# Create / read
# ============================================


async def create(
    db: AsyncSession,
    *,
    user_id: UUID,
    job_id: UUID,
    job_snapshot: dict,
) -> Application:
    """
    Create a draft application.

    Raises:
        IntegrityError: If the (user, job) pair or the generated number already exists
    """
    application = Application(
        application_number=generate_application_number(),
        user_id=user_id,
        job_id=job_id,
        job_snapshot=job_snapshot,
        status=ApplicationStatus.DRAFT,
        is_locked=False,
        sections={},
        status_history=[],
    )

    db.add(application)
    await db.commit()
    await db.refresh(application)

    return application


async def get_by_id(db: AsyncSession, id: UUID) -> Application | None:
    """Get application by ID."""
    return await db.get(Application, id)


async def get_by_user_and_job(db: AsyncSession, user_id: UUID, job_id: UUID) -> Application | None:
    result = await db.execute(
        select(Application).where(
            Application.user_id == user_id,
            Application.job_id == job_id,
        )
    )
    return result.scalar_one_or_none()


async def list_for_user(
    db: AsyncSession,
    user_id: UUID,
    *,
    status: ApplicationStatus | None = None,
    job_id: UUID | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Application], int]:
    """An applicant's own applications, newest first."""
    query = select(Application).where(Application.user_id == user_id)
    if status:
        query = query.where(Application.status == status)
    if job_id:
        query = query.where(Application.job_id == job_id)

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    result = await db.execute(
        query.order_by(desc(Application.created_at)).offset(skip).limit(limit)
    )
    return list(result.scalars().all()), total


async def reload(db: AsyncSession, application: Application) -> Application:
    """Re-read an application's current row, discarding stale in-memory state."""
    await db.refresh(application)
    return application


# ============================================
# Sections
# ============================================


async def set_section(
    db: AsyncSession,
    application: Application,
    section_type: str,
    state: dict,
) -> Application:
    """
    Replace one entry of the sections map and commit.

    Raises:
        StaleDataError: If the row was updated since it was loaded
    """
    application.sections = {**(application.sections or {}), section_type: state}

    await db.commit()
    await db.refresh(application)

    return application


# ============================================
# Status changes
# ============================================


async def submit(
    db: AsyncSession,
    application: Application,
    *,
    changed_by: UUID,
    remarks: str = "Application submitted by applicant",
) -> Application:
    """Move a draft to submitted and lock it, with its history entry."""
    now = datetime.now(UTC)

    application.status = ApplicationStatus.SUBMITTED
    application.submitted_at = now
    application.is_locked = True
    application.locked_at = now
    _append_history(
        application, history_entry(ApplicationStatus.SUBMITTED, changed_by, remarks, now)
    )

    await db.commit()
    await db.refresh(application)

    return application


async def withdraw(
    db: AsyncSession,
    application: Application,
    *,
    changed_by: UUID,
    reason: str,
) -> Application:
    """Withdraw a submitted application. The lock stays on."""
    application.status = ApplicationStatus.WITHDRAWN
    _append_history(application, history_entry(ApplicationStatus.WITHDRAWN, changed_by, reason))

    await db.commit()
    await db.refresh(application)

    return application


async def update_status(
    db: AsyncSession,
    application: Application,
    status: ApplicationStatus,
    *,
    changed_by: UUID,
    remarks: str | None = None,
) -> Application:
    """
    Admin status change, validated by the state machine.

    Raises:
        InvalidStatusTransitionError: If the transition is not allowed
        StaleDataError: If the row was updated since it was loaded
    """
    old_status = application.status
    validate_transition(old_status, status)

    application.status = status
    _append_history(
        application,
        history_entry(
            status,
            changed_by,
            remarks or f"Status changed from {old_status.value} to {status.value}",
        ),
    )

    await db.commit()
    await db.refresh(application)

    return application


async def bulk_update_status(
    db: AsyncSession,
    application_ids: list[UUID],
    status: ApplicationStatus,
    *,
    changed_by: UUID,
    remarks: str | None = None,
) -> int:
    """
    Apply one status to many applications in a single transaction.

    Ids that do not exist, or whose current status cannot move to `status`,
    are skipped. Each modified application gets its own history entry.

    Returns:
        Number of applications modified
    """
    result = await db.execute(select(Application).where(Application.id.in_(application_ids)))
    applications = list(result.scalars().all())

    now = datetime.now(UTC)
    entry_remarks = remarks or f"Bulk status update to {status.value}"
    modified = 0

    for application in applications:
        if not is_transition_allowed(application.status, status):
            continue
        application.status = status
        _append_history(application, history_entry(status, changed_by, entry_remarks, now))
        modified += 1

    await db.commit()

    return modified


# ============================================
# Review
# ============================================


async def set_review_notes(
    db: AsyncSession,
    application: Application,
    review_notes: str,
    reviewed_by: UUID,
) -> Application:
    application.review_notes = review_notes
    application.reviewed_by = reviewed_by
    application.reviewed_at = datetime.now(UTC)

    await db.commit()
    await db.refresh(application)

    return application


async def delete(db: AsyncSession, application: Application) -> None:
    """Hard-delete an application row."""
    await db.delete(application)
    await db.commit()


# ============================================
# Admin Repository Methods
# ============================================


def _admin_filters(
    query,
    *,
    job_id: UUID | None = None,
    status: ApplicationStatus | None = None,
    search: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
):
    if job_id:
        query = query.where(Application.job_id == job_id)
    if status:
        query = query.where(Application.status == status)
    if date_from:
        query = query.where(Application.submitted_at >= date_from)
    if date_to:
        query = query.where(Application.submitted_at <= date_to)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                Application.application_number.ilike(pattern),
                Application.user_id.in_(
                    select(User.id).where(
                        or_(User.email.ilike(pattern), User.full_name.ilike(pattern))
                    )
                ),
            )
        )
    return query


async def get_applications_for_admin(
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
) -> tuple[list[Application], int]:
    """
    Applications with filters, sorting and pagination for the admin dashboard.

    Args:
        db: Database session
        job_id: Only applications for this job
        status: Only applications in this status
        search: Case-insensitive match on application number, applicant email or name
        date_from: Submitted on or after
        date_to: Submitted on or before
        sort_by: created_at, submitted_at or application_number (default created_at)
        sort_order: asc or desc (default desc)
        skip: Records to skip
        limit: Maximum records to return

    Returns:
        Tuple of (applications, total count matching filters)
    """
    query = _admin_filters(
        select(Application),
        job_id=job_id,
        status=status,
        search=search,
        date_from=date_from,
        date_to=date_to,
    )

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    if sort_by not in SORTABLE_COLUMNS:
        sort_by = "created_at"
    sort_column = getattr(Application, sort_by)
    query = query.order_by(asc(sort_column) if sort_order.lower() == "asc" else desc(sort_column))

    result = await db.execute(query.offset(skip).limit(limit))
    return list(result.scalars().all()), total


async def get_applications_for_export(
    db: AsyncSession,
    *,
    job_id: UUID | None = None,
    status: ApplicationStatus | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> list[tuple[Application, User]]:
    """Filtered applications with their applicants, newest first."""
    query = _admin_filters(
        select(Application, User).join(User, Application.user_id == User.id),
        job_id=job_id,
        status=status,
        date_from=date_from,
        date_to=date_to,
    ).order_by(desc(Application.created_at))

    result = await db.execute(query)
    return [(row[0], row[1]) for row in result.all()]


async def get_status_counts(db: AsyncSession) -> dict[ApplicationStatus, int]:
    """Number of applications in each status (zero-filled)."""
    result = await db.execute(
        select(Application.status, func.count(Application.id)).group_by(Application.status)
    )
    counts = {status: 0 for status in ApplicationStatus}
    for status, count in result.all():
        counts[ApplicationStatus(status)] = count
    return counts
