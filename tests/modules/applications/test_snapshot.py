"""
Unit tests for the job snapshot builder.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from app.modules.applications.errors import (
    ApplicationDeadlinePassedError,
    JobNotFoundError,
    JobNotPublishedError,
)
from app.modules.applications.snapshot import build_snapshot, snapshot_from_job
from app.modules.jobs.models import JobStatus


class TestSnapshotFromJob:
    def test_copies_job_configuration(self, published_job):
        published_job.custom_fields = [
            {"field_name": "gate_score", "field_type": "number", "is_mandatory": True}
        ]

        snapshot = snapshot_from_job(published_job)

        assert snapshot["title"] == "Assistant Professor"
        assert snapshot["advertisement_no"] == "ADV-2026-07"
        assert snapshot["department"] == "Computer Science"
        assert [s["section_type"] for s in snapshot["required_sections"]] == [
            "personal",
            "declaration",
        ]
        assert snapshot["required_sections"][0]["is_mandatory"] is True
        assert snapshot["custom_fields"][0]["field_name"] == "gate_score"

    def test_later_job_edits_do_not_leak(self, published_job):
        snapshot = snapshot_from_job(published_job)

        published_job.required_sections.append({"section_type": "photo", "is_mandatory": True})
        published_job.title = "Professor"

        assert len(snapshot["required_sections"]) == 2
        assert snapshot["title"] == "Assistant Professor"

    def test_unpublished_job(self, published_job):
        published_job.status = JobStatus.DRAFT
        with pytest.raises(JobNotPublishedError):
            snapshot_from_job(published_job)

    def test_deadline_passed(self, published_job):
        published_job.application_end_date = datetime.now(UTC) - timedelta(days=1)
        with pytest.raises(ApplicationDeadlinePassedError):
            snapshot_from_job(published_job)


class TestBuildSnapshot:
    @pytest.mark.asyncio
    async def test_job_not_found(self, mock_db):
        with patch("app.modules.applications.snapshot.job_repository") as mock_jobs:
            mock_jobs.get_by_id = AsyncMock(return_value=None)
            with pytest.raises(JobNotFoundError):
                await build_snapshot(mock_db, uuid4())

    @pytest.mark.asyncio
    async def test_loads_job(self, mock_db, published_job):
        with patch("app.modules.applications.snapshot.job_repository") as mock_jobs:
            mock_jobs.get_by_id = AsyncMock(return_value=published_job)

            snapshot = await build_snapshot(mock_db, published_job.id)

            assert snapshot["advertisement_no"] == published_job.advertisement_no
            mock_jobs.get_by_id.assert_awaited_once_with(mock_db, published_job.id)
