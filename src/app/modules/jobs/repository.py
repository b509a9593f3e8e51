"""
Job Posting Repository

Database operations for job postings.
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Job, JobStatus
from .schemas import JobCreate


async def create(db: AsyncSession, data: JobCreate) -> Job:
    """Create a job posting in draft status."""

    job = Job(
        title=data.title,
        advertisement_no=data.advertisement_no,
        department=data.department,
        description=data.description,
        status=JobStatus.DRAFT,
        application_start_date=data.application_start_date,
        application_end_date=data.application_end_date,
        required_sections=[section.model_dump(mode="json") for section in data.required_sections],
        custom_fields=[field.model_dump(mode="json") for field in data.custom_fields],
    )

    db.add(job)
    await db.commit()
    await db.refresh(job)

    return job


async def get_by_id(db: AsyncSession, id: UUID) -> Job | None:
    """Get job by ID."""
    return await db.get(Job, id)


async def get_by_advertisement_no(db: AsyncSession, advertisement_no: str) -> Job | None:
    """Get job by advertisement number."""
    result = await db.execute(select(Job).where(Job.advertisement_no == advertisement_no))
    return result.scalar_one_or_none()


async def list_published(
    db: AsyncSession,
    *,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Job], int]:
    """List published jobs, soonest deadline first."""
    query = select(Job).where(Job.status == JobStatus.PUBLISHED)

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    result = await db.execute(
        query.order_by(Job.application_end_date.asc()).offset(skip).limit(limit)
    )
    return list(result.scalars().all()), total


async def update_status(db: AsyncSession, job: Job, status: JobStatus) -> Job:
    """Move a job to a new publication status, stamping published_at / closed_at."""
    job.status = status

    now = datetime.now(UTC)
    if status == JobStatus.PUBLISHED:
        job.published_at = now
    elif status == JobStatus.CLOSED:
        job.closed_at = now

    await db.commit()
    await db.refresh(job)

    return job
