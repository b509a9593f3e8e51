"""
Tests for admin and reviewer service functions.

Status changes run through the real repository functions against a mocked
session so the state machine and history entries are exercised.
"""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.orm.exc import StaleDataError

from app.modules.applications.models import ApplicationStatus
from app.modules.applications.service import (
    ApplicationNotFoundError,
    ConcurrentModificationError,
    InvalidStatusTransitionError,
    JobNotFoundError,
    SectionNotFoundError,
    admin_add_review_notes,
    admin_bulk_update_status,
    admin_export_csv,
    admin_get_application,
    admin_get_dashboard_stats,
    admin_list_applications,
    admin_list_applications_for_job,
    admin_update_status,
    admin_verify_section,
)
from app.modules.jobs.models import SectionType

SERVICE = "app.modules.applications.service"


@pytest.fixture(autouse=True)
def audit():
    with patch(f"{SERVICE}.record_event", new_callable=AsyncMock) as mock_record:
        mock_record.return_value = True
        yield mock_record


def _scalars_result(items):
    result = MagicMock()
    result.scalars.return_value.all.return_value = items
    return result


class TestAdminListing:
    @pytest.mark.asyncio
    async def test_limit_capped(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_applications_for_admin = AsyncMock(return_value=([], 0))

            result = await admin_list_applications(mock_db, limit=1000, skip=-5)

            assert result == {"applications": [], "total": 0, "skip": 0, "limit": 100}
            kwargs = mock_repo.get_applications_for_admin.await_args.kwargs
            assert kwargs["limit"] == 100
            assert kwargs["sort_by"] == "created_at"

    @pytest.mark.asyncio
    async def test_filters_forwarded(self, mock_db, draft_application):
        job_id = uuid4()
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_applications_for_admin = AsyncMock(
                return_value=([draft_application], 1)
            )

            result = await admin_list_applications(
                mock_db,
                job_id=job_id,
                status=ApplicationStatus.SUBMITTED,
                search="asha",
                sort_by="application_number",
                sort_order="asc",
            )

            assert result["total"] == 1
            kwargs = mock_repo.get_applications_for_admin.await_args.kwargs
            assert kwargs["job_id"] == job_id
            assert kwargs["status"] == ApplicationStatus.SUBMITTED
            assert kwargs["search"] == "asha"
            assert kwargs["sort_order"] == "asc"

    @pytest.mark.asyncio
    async def test_job_listing_requires_job(self, mock_db):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.job_repository") as mock_jobs,
        ):
            mock_jobs.get_by_id = AsyncMock(return_value=None)
            mock_repo.get_applications_for_admin = AsyncMock()

            with pytest.raises(JobNotFoundError):
                await admin_list_applications_for_job(mock_db, uuid4())

            mock_repo.get_applications_for_admin.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_missing_application(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(ApplicationNotFoundError) as exc_info:
                await admin_get_application(mock_db, uuid4())

            assert exc_info.value.status_code == 404


class TestAdminUpdateStatus:
    @pytest.mark.asyncio
    async def test_shortlist(self, mock_db, admin_user, make_application, audit):
        application = make_application(status=ApplicationStatus.UNDER_REVIEW, is_locked=True)
        with patch(f"{SERVICE}.repository.get_by_id", new=AsyncMock(return_value=application)):
            result = await admin_update_status(
                mock_db,
                application.id,
                ApplicationStatus.SHORTLISTED,
                admin_user,
                remarks="Strong publication record",
            )

        assert result.status == ApplicationStatus.SHORTLISTED
        assert result.status_history[-1]["status"] == "shortlisted"
        assert result.status_history[-1]["remarks"] == "Strong publication record"
        assert result.status_history[-1]["changed_by"] == str(admin_user.id)
        mock_db.commit.assert_awaited_once()
        changes = audit.await_args.kwargs["changes"]
        assert changes["before"] == {"status": "under_review"}
        assert changes["after"] == {"status": "shortlisted"}

    @pytest.mark.asyncio
    async def test_default_remarks(self, mock_db, admin_user, make_application):
        application = make_application(status=ApplicationStatus.SUBMITTED, is_locked=True)
        with patch(f"{SERVICE}.repository.get_by_id", new=AsyncMock(return_value=application)):
            await admin_update_status(
                mock_db, application.id, ApplicationStatus.UNDER_REVIEW, admin_user
            )

        assert application.status_history[-1]["remarks"] == (
            "Status changed from submitted to under_review"
        )

    @pytest.mark.asyncio
    async def test_withdrawn_cannot_be_selected(
        self, mock_db, admin_user, make_application, audit
    ):
        application = make_application(status=ApplicationStatus.WITHDRAWN, is_locked=True)
        with patch(f"{SERVICE}.repository.get_by_id", new=AsyncMock(return_value=application)):
            with pytest.raises(InvalidStatusTransitionError) as exc_info:
                await admin_update_status(
                    mock_db, application.id, ApplicationStatus.SELECTED, admin_user
                )

        assert exc_info.value.status_code == 409
        assert application.status == ApplicationStatus.WITHDRAWN
        assert application.status_history == []
        mock_db.commit.assert_not_awaited()
        audit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_withdrawn_can_be_reactivated(self, mock_db, admin_user, make_application):
        application = make_application(status=ApplicationStatus.WITHDRAWN, is_locked=True)
        with patch(f"{SERVICE}.repository.get_by_id", new=AsyncMock(return_value=application)):
            result = await admin_update_status(
                mock_db, application.id, ApplicationStatus.SUBMITTED, admin_user
            )

        assert result.status == ApplicationStatus.SUBMITTED

    @pytest.mark.asyncio
    async def test_concurrent_change_reported(self, mock_db, admin_user, make_application):
        application = make_application(status=ApplicationStatus.SUBMITTED, is_locked=True)
        mock_db.commit = AsyncMock(side_effect=StaleDataError("version mismatch"))
        with patch(f"{SERVICE}.repository.get_by_id", new=AsyncMock(return_value=application)):
            with pytest.raises(ConcurrentModificationError) as exc_info:
                await admin_update_status(
                    mock_db, application.id, ApplicationStatus.REJECTED, admin_user
                )

        assert exc_info.value.status_code == 409
        mock_db.rollback.assert_awaited_once()


class TestAdminBulkUpdateStatus:
    @pytest.mark.asyncio
    async def test_missing_ids_are_skipped(self, mock_db, admin_user, make_application, audit):
        applications = [
            make_application(status=ApplicationStatus.SUBMITTED, is_locked=True) for _ in range(4)
        ]
        ids = [a.id for a in applications] + [uuid4()]
        mock_db.execute = AsyncMock(return_value=_scalars_result(applications))

        result = await admin_bulk_update_status(
            mock_db, ids, ApplicationStatus.UNDER_REVIEW, admin_user
        )

        assert result.modified_count == 4
        assert result.requested_count == 5
        for application in applications:
            assert application.status == ApplicationStatus.UNDER_REVIEW
            assert application.status_history[-1]["remarks"] == "Bulk status update to under_review"
        mock_db.commit.assert_awaited_once()
        assert audit.await_args.kwargs["changes"]["modified_count"] == 4

    @pytest.mark.asyncio
    async def test_disallowed_transitions_are_skipped(
        self, mock_db, admin_user, make_application
    ):
        withdrawn = make_application(status=ApplicationStatus.WITHDRAWN, is_locked=True)
        submitted = make_application(status=ApplicationStatus.SUBMITTED, is_locked=True)
        mock_db.execute = AsyncMock(return_value=_scalars_result([withdrawn, submitted]))

        result = await admin_bulk_update_status(
            mock_db, [withdrawn.id, submitted.id], ApplicationStatus.REJECTED, admin_user
        )

        assert result.modified_count == 1
        assert withdrawn.status == ApplicationStatus.WITHDRAWN
        assert submitted.status == ApplicationStatus.REJECTED

    @pytest.mark.asyncio
    async def test_conflict_retries_batch_once(self, mock_db, admin_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.bulk_update_status = AsyncMock(
                side_effect=[StaleDataError("version mismatch"), 2]
            )

            result = await admin_bulk_update_status(
                mock_db, [uuid4(), uuid4()], ApplicationStatus.SELECTED, admin_user
            )

            assert result.modified_count == 2
            assert mock_repo.bulk_update_status.await_count == 2
            mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_second_conflict_fails_whole_batch(self, mock_db, admin_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.bulk_update_status = AsyncMock(
                side_effect=StaleDataError("version mismatch")
            )

            with pytest.raises(ConcurrentModificationError):
                await admin_bulk_update_status(
                    mock_db, [uuid4()], ApplicationStatus.SELECTED, admin_user
                )


class TestReview:
    @pytest.mark.asyncio
    async def test_review_notes(self, mock_db, reviewer_user, make_application):
        application = make_application(status=ApplicationStatus.UNDER_REVIEW, is_locked=True)
        with patch(f"{SERVICE}.repository.get_by_id", new=AsyncMock(return_value=application)):
            result = await admin_add_review_notes(
                mock_db, application.id, "Check experience letters", reviewer_user
            )

        assert result.review_notes == "Check experience letters"
        assert result.reviewed_by == reviewer_user.id
        assert result.reviewed_at is not None
        assert result.status == ApplicationStatus.UNDER_REVIEW
        assert result.status_history == []

    @pytest.mark.asyncio
    async def test_verify_section_on_locked_application(
        self, mock_db, reviewer_user, make_application, complete_sections, set_section_effect
    ):
        application = make_application(
            status=ApplicationStatus.SUBMITTED, is_locked=True, sections=complete_sections
        )
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=application)
            mock_repo.set_section = AsyncMock(side_effect=set_section_effect)

            section = await admin_verify_section(
                mock_db,
                application.id,
                SectionType.EDUCATION,
                True,
                reviewer_user,
                notes="Originals seen",
            )

        assert section.is_verified is True
        assert section.verified_by == reviewer_user.id
        assert section.verification_notes == "Originals seen"
        assert section.file_url == "http://files/degrees.pdf"

    @pytest.mark.asyncio
    async def test_verify_retries_conflict_on_locked_application(
        self, mock_db, reviewer_user, make_application, complete_sections, set_section_effect
    ):
        application = make_application(
            status=ApplicationStatus.SUBMITTED, is_locked=True, sections=complete_sections
        )
        calls = []

        async def conflict_once(db, app, key, state):
            calls.append(key)
            if len(calls) == 1:
                raise StaleDataError("version mismatch")
            return await set_section_effect(db, app, key, state)

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=application)
            mock_repo.reload = AsyncMock(return_value=application)
            mock_repo.set_section = AsyncMock(side_effect=conflict_once)

            section = await admin_verify_section(
                mock_db, application.id, SectionType.EDUCATION, True, reviewer_user
            )

            assert mock_repo.set_section.await_count == 2
            mock_repo.reload.assert_awaited_once()

        assert section.is_verified is True
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_verify_unsaved_section(self, mock_db, reviewer_user, draft_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=draft_application)
            mock_repo.set_section = AsyncMock()

            with pytest.raises(SectionNotFoundError):
                await admin_verify_section(
                    mock_db, draft_application.id, SectionType.PERSONAL, True, reviewer_user
                )

            mock_repo.set_section.assert_not_awaited()


class TestExportAndStats:
    @pytest.mark.asyncio
    async def test_export_csv(self, mock_db, make_application):
        application = make_application(
            status=ApplicationStatus.SUBMITTED,
            submitted_at=datetime(2026, 3, 1, 10, 30, tzinfo=UTC),
            created_at=datetime(2026, 2, 20, 9, 0, tzinfo=UTC),
        )
        user = SimpleNamespace(email="candidate@test.com", full_name="Asha Rao")
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_applications_for_export = AsyncMock(return_value=[(application, user)])

            content = await admin_export_csv(mock_db, status=ApplicationStatus.SUBMITTED)

        lines = content.strip().splitlines()
        assert lines[0] == (
            "Application Number,Applicant Email,Applicant Name,Job Title,"
            "Advertisement No,Status,Submitted At,Created At"
        )
        assert lines[1].startswith(
            "APP-2026-0A1B2C3D,candidate@test.com,Asha Rao,Assistant Professor,ADV-2026-07,"
            "submitted,2026-03-01T10:30:00+00:00"
        )

    @pytest.mark.asyncio
    async def test_export_empty(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_applications_for_export = AsyncMock(return_value=[])
            content = await admin_export_csv(mock_db)

        assert len(content.strip().splitlines()) == 1

    @pytest.mark.asyncio
    async def test_dashboard_stats(self, mock_db):
        counts = {status: 0 for status in ApplicationStatus}
        counts[ApplicationStatus.SUBMITTED] = 7
        counts[ApplicationStatus.DRAFT] = 3
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_status_counts = AsyncMock(return_value=counts)

            stats = await admin_get_dashboard_stats(mock_db)

        assert stats.total == 10
        assert stats.by_status[ApplicationStatus.SUBMITTED] == 7
