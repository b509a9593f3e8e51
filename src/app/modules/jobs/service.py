"""
Job Posting Service Layer

Authoring operations for job postings. Applications only ever read a job
once, when they snapshot its section configuration.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.jobs import repository
from app.modules.jobs.models import Job, JobStatus
from app.modules.jobs.schemas import JobCreate

logger = logging.getLogger(__name__)


class JobServiceError(Exception):
    """Base exception for job service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class JobNotFoundError(JobServiceError):
    """Raised when a job posting is not found."""

    def __init__(self, job_id: UUID | None = None):
        message = f"Job {job_id} not found" if job_id else "Job not found"
        super().__init__(message=message, error_code="JOB_NOT_FOUND", status_code=404)


class DuplicateAdvertisementError(JobServiceError):
    """Raised when the advertisement number is already used."""

    def __init__(self, advertisement_no: str):
        super().__init__(
            message=f"A job with advertisement number '{advertisement_no}' already exists",
            error_code="DUPLICATE_ADVERTISEMENT",
            status_code=409,
        )


class InvalidJobStateError(JobServiceError):
    """Raised when a job is not in the right status for an operation."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="INVALID_JOB_STATE", status_code=409)


async def create_job(db: AsyncSession, data: JobCreate) -> Job:
    """Create a draft job posting."""
    existing = await repository.get_by_advertisement_no(db, data.advertisement_no)
    if existing:
        logger.warning(f"Duplicate advertisement number: {data.advertisement_no}")
        raise DuplicateAdvertisementError(data.advertisement_no)

    job = await repository.create(db, data)
    logger.info(f"Job created: id={job.id}, advertisement_no={job.advertisement_no}")
    return job


async def get_job(db: AsyncSession, job_id: UUID) -> Job:
    job = await repository.get_by_id(db, job_id)
    if not job:
        raise JobNotFoundError(job_id)
    return job


async def get_published_job(db: AsyncSession, job_id: UUID) -> Job:
    """Public lookup; unpublished jobs are reported as not found."""
    job = await repository.get_by_id(db, job_id)
    if not job or job.status != JobStatus.PUBLISHED:
        raise JobNotFoundError(job_id)
    return job


async def list_published_jobs(db: AsyncSession, *, skip: int = 0, limit: int = 20) -> dict:
    jobs, total = await repository.list_published(db, skip=skip, limit=limit)
    return {"jobs": jobs, "total": total, "skip": skip, "limit": limit}


async def publish_job(db: AsyncSession, job_id: UUID) -> Job:
    """Publish a draft (or re-open a closed) job."""
    job = await get_job(db, job_id)

    if job.status not in (JobStatus.DRAFT, JobStatus.CLOSED):
        raise InvalidJobStateError(f"Job cannot be published from status '{job.status.value}'")

    job = await repository.update_status(db, job, JobStatus.PUBLISHED)
    logger.info(f"Job published: id={job.id}")
    return job


async def close_job(db: AsyncSession, job_id: UUID) -> Job:
    job = await get_job(db, job_id)

    if job.status == JobStatus.CLOSED:
        raise InvalidJobStateError("Job is already closed")
    if job.status != JobStatus.PUBLISHED:
        raise InvalidJobStateError("Only published jobs can be closed")

    job = await repository.update_status(db, job, JobStatus.CLOSED)
    logger.info(f"Job closed: id={job.id}")
    return job
