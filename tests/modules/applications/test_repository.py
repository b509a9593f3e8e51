"""
Unit tests for applications repository layer.

These tests focus on the status machine and history entries.
"""

from datetime import UTC, datetime
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from app.modules.applications.errors import InvalidStatusTransitionError
from app.modules.applications.models import ApplicationStatus
from app.modules.applications.repository import (
    VALID_STATUS_TRANSITIONS,
    bulk_update_status,
    history_entry,
    is_transition_allowed,
    submit,
    update_status,
    validate_transition,
    withdraw,
)

ACTIVE_STATUSES = [s for s in ApplicationStatus if s != ApplicationStatus.WITHDRAWN]


class TestStatusTransitions:
    """Tests for the admin status machine."""

    @pytest.mark.parametrize("current", ACTIVE_STATUSES)
    def test_active_statuses_reach_every_status(self, current):
        assert VALID_STATUS_TRANSITIONS[current] == frozenset(ApplicationStatus)

    def test_withdrawn_only_reactivates_to_submitted(self):
        assert VALID_STATUS_TRANSITIONS[ApplicationStatus.WITHDRAWN] == {
            ApplicationStatus.SUBMITTED
        }

    @pytest.mark.parametrize(
        "target", [s for s in ApplicationStatus if s != ApplicationStatus.SUBMITTED]
    )
    def test_withdrawn_to_other_status_rejected(self, target):
        assert not is_transition_allowed(ApplicationStatus.WITHDRAWN, target)
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            validate_transition(ApplicationStatus.WITHDRAWN, target)
        assert exc_info.value.message == (
            "Withdrawn applications cannot be transitioned to this status"
        )
        assert exc_info.value.status_code == 409

    def test_every_status_has_an_entry(self):
        assert set(VALID_STATUS_TRANSITIONS) == set(ApplicationStatus)


class TestHistoryEntry:
    def test_serializes_values(self):
        changed_by = uuid4()
        at = datetime(2026, 5, 1, 9, 0, tzinfo=UTC)
        entry = history_entry(ApplicationStatus.SHORTLISTED, changed_by, "Good fit", at)
        assert entry == {
            "status": "shortlisted",
            "changed_by": str(changed_by),
            "changed_at": "2026-05-01T09:00:00+00:00",
            "remarks": "Good fit",
        }


class TestStatusWrites:
    """Status, history and lock are written in one commit."""

    @pytest.mark.asyncio
    async def test_submit_locks_and_appends_history(self, mock_db, draft_application, applicant):
        previous = draft_application.status_history

        result = await submit(mock_db, draft_application, changed_by=applicant.id)

        assert result.status == ApplicationStatus.SUBMITTED
        assert result.is_locked is True
        assert result.submitted_at is not None
        assert result.locked_at == result.submitted_at
        assert len(result.status_history) == 1
        assert result.status_history[0]["remarks"] == "Application submitted by applicant"
        assert result.status_history is not previous
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_withdraw_keeps_lock(self, mock_db, make_application, applicant):
        application = make_application(status=ApplicationStatus.SUBMITTED, is_locked=True)

        result = await withdraw(mock_db, application, changed_by=applicant.id, reason="Moved on")

        assert result.status == ApplicationStatus.WITHDRAWN
        assert result.is_locked is True
        assert result.status_history[-1]["remarks"] == "Moved on"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_status_default_remarks(self, mock_db, make_application, admin_user):
        application = make_application(status=ApplicationStatus.SUBMITTED, is_locked=True)

        result = await update_status(
            mock_db, application, ApplicationStatus.UNDER_REVIEW, changed_by=admin_user.id
        )

        assert result.status == ApplicationStatus.UNDER_REVIEW
        assert result.status_history[-1]["remarks"] == (
            "Status changed from submitted to under_review"
        )

    @pytest.mark.asyncio
    async def test_update_status_rejected_leaves_application_unchanged(
        self, mock_db, make_application, admin_user
    ):
        application = make_application(status=ApplicationStatus.WITHDRAWN, is_locked=True)

        with pytest.raises(InvalidStatusTransitionError):
            await update_status(
                mock_db, application, ApplicationStatus.SELECTED, changed_by=admin_user.id
            )

        assert application.status == ApplicationStatus.WITHDRAWN
        assert application.status_history == []
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bulk_update_skips_disallowed(self, mock_db, make_application, admin_user):
        submitted = make_application(status=ApplicationStatus.SUBMITTED)
        withdrawn = make_application(status=ApplicationStatus.WITHDRAWN)
        result = MagicMock()
        result.scalars.return_value.all.return_value = [submitted, withdrawn]
        mock_db.execute.return_value = result

        modified = await bulk_update_status(
            mock_db,
            [submitted.id, withdrawn.id, uuid4()],
            ApplicationStatus.SHORTLISTED,
            changed_by=admin_user.id,
        )

        assert modified == 1
        assert submitted.status == ApplicationStatus.SHORTLISTED
        assert submitted.status_history[-1]["remarks"] == "Bulk status update to shortlisted"
        assert withdrawn.status == ApplicationStatus.WITHDRAWN
        mock_db.commit.assert_awaited_once()
