"""
Job Snapshot Builder

Copies the parts of a job an application depends on (title, advertisement
number, department, required sections, custom fields) into a plain JSON
value owned by the application. Later edits to the job never reach it.
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.applications.errors import (
    ApplicationDeadlinePassedError,
    JobNotFoundError,
    JobNotPublishedError,
)
from app.modules.applications.schemas import JobSnapshot
from app.modules.jobs import repository as job_repository
from app.modules.jobs.models import Job, JobStatus

logger = logging.getLogger(__name__)


def snapshot_from_job(job: Job, now: datetime | None = None) -> dict:
    """
    Build the snapshot for a loaded job.

    Raises:
        JobNotPublishedError: If the job is not published
        ApplicationDeadlinePassedError: If the application end date is past
    """
    if job.status != JobStatus.PUBLISHED:
        raise JobNotPublishedError()

    if (now or datetime.now(UTC)) > job.application_end_date:
        raise ApplicationDeadlinePassedError()

    # Round-tripping through the schema yields fresh containers
    snapshot = JobSnapshot(
        title=job.title,
        advertisement_no=job.advertisement_no,
        department=job.department,
        required_sections=job.required_sections or [],
        custom_fields=job.custom_fields or [],
    )
    return snapshot.model_dump(mode="json")


async def build_snapshot(db: AsyncSession, job_id: UUID, now: datetime | None = None) -> dict:
    """
    Load a job and snapshot its configuration.

    Raises:
        JobNotFoundError: If the job does not exist
        JobNotPublishedError: If the job is not published
        ApplicationDeadlinePassedError: If the application end date is past
    """
    job = await job_repository.get_by_id(db, job_id)
    if not job:
        raise JobNotFoundError(job_id)

    snapshot = snapshot_from_job(job, now)
    logger.debug(
        f"Snapshot built for job {job_id}: {len(snapshot['required_sections'])} sections"
    )
    return snapshot
