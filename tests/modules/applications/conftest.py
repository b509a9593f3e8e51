"""
Fixtures for applications tests.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from app.core.auth import CurrentUser
from app.core.storage import StoredBlob
from app.modules.applications.models import Application, ApplicationStatus, PaymentStatus
from app.modules.jobs.models import Job, JobStatus


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.rollback = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.delete = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def applicant():
    return CurrentUser(id=uuid4(), email="candidate@test.com", role="applicant", name="Asha Rao")


@pytest.fixture
def other_applicant():
    return CurrentUser(id=uuid4(), email="other@test.com", role="applicant", name="Ravi Kumar")


@pytest.fixture
def admin_user():
    return CurrentUser(id=uuid4(), email="admin@test.com", role="admin", name="Admin")


@pytest.fixture
def reviewer_user():
    return CurrentUser(id=uuid4(), email="reviewer@test.com", role="reviewer", name="Reviewer")


@pytest.fixture
def job_snapshot():
    """Snapshot with mandatory, optional, file-only and custom sections."""
    return {
        "title": "Assistant Professor",
        "advertisement_no": "ADV-2026-07",
        "department": "Computer Science",
        "required_sections": [
            {"section_type": "personal", "is_mandatory": True},
            {"section_type": "photo", "is_mandatory": True},
            {
                "section_type": "education",
                "is_mandatory": True,
                "requires_file": True,
                "file_label": "Degree certificates",
                "max_file_size_mb": 2,
            },
            {"section_type": "publications_journal", "is_mandatory": False},
            {"section_type": "declaration", "is_mandatory": True},
            {"section_type": "custom", "is_mandatory": False},
        ],
        "custom_fields": [
            {"field_name": "gate_score", "field_type": "number", "is_mandatory": True},
            {
                "field_name": "shift",
                "field_type": "dropdown",
                "options": ["morning", "evening"],
                "is_mandatory": False,
            },
        ],
    }


@pytest.fixture
def personal_data():
    return {
        "post_applied_for": "Assistant Professor",
        "department_discipline": "Computer Science",
        "category": "GEN",
        "disability": False,
        "name": "Asha Rao",
        "dob": "1988-04-12",
        "father_name": "Mohan Rao",
        "nationality": "Indian",
        "gender": "female",
        "marital_status": "single",
        "corr_address": "12 MG Road, Indiranagar",
        "corr_city": "Bengaluru",
        "corr_district": "Bengaluru Urban",
        "corr_state": "Karnataka",
        "corr_pincode": "560038",
        "mobile": "9876543210",
        "perm_address": "12 MG Road, Indiranagar",
        "perm_city": "Bengaluru",
        "perm_district": "Bengaluru Urban",
        "perm_state": "Karnataka",
        "perm_pincode": "560038",
        "specialization": ["Machine Learning"],
        "phd_title": "Learning representations for sparse graphs",
        "phd_university": "IISc Bangalore",
        "phd_date": "2016-08-30",
        "degree_from_top_institute": ["phd"],
    }


@pytest.fixture
def education_data():
    return {
        "items": [
            {
                "exam_passed": "phd",
                "discipline": "Computer Science",
                "board_university": "IISc Bangalore",
                "marks": "Awarded",
                "class_division": "NA",
                "year_of_passing": "2016",
            }
        ]
    }


@pytest.fixture
def declaration_data():
    return {
        "declare_info_true": True,
        "agree_to_terms": True,
        "photo_uploaded": True,
        "details_verified": True,
    }


@pytest.fixture
def make_application(applicant, job_snapshot):
    """Factory for application models; keyword arguments override defaults."""

    def _make(**overrides):
        app = MagicMock(spec=Application)
        app.id = uuid4()
        app.application_number = "APP-2026-0A1B2C3D"
        app.user_id = applicant.id
        app.job_id = uuid4()
        app.job_snapshot = job_snapshot
        app.status = ApplicationStatus.DRAFT
        app.submitted_at = None
        app.is_locked = False
        app.locked_at = None
        app.sections = {}
        app.status_history = []
        app.review_notes = None
        app.reviewed_by = None
        app.reviewed_at = None
        app.payment_status = PaymentStatus.PENDING
        app.version = 1
        app.created_at = datetime.now(UTC)
        app.updated_at = datetime.now(UTC)
        for name, value in overrides.items():
            setattr(app, name, value)
        return app

    return _make


@pytest.fixture
def draft_application(make_application):
    return make_application()


@pytest.fixture
def complete_sections(personal_data, education_data, declaration_data):
    """Stored sections that satisfy every mandatory requirement of job_snapshot."""
    now = datetime.now(UTC).isoformat()
    return {
        "personal": {"data": personal_data, "saved_at": now, "is_complete": True},
        "photo": {
            "file_url": "http://files/photo.jpg",
            "file_storage_id": "applications/x/photo/a.jpg",
            "is_complete": True,
        },
        "education": {
            "data": education_data,
            "file_url": "http://files/degrees.pdf",
            "file_storage_id": "applications/x/education/b.pdf",
            "saved_at": now,
            "is_complete": True,
        },
        "declaration": {"data": declaration_data, "saved_at": now, "is_complete": True},
    }


@pytest.fixture
def published_job():
    job = MagicMock(spec=Job)
    job.id = uuid4()
    job.title = "Assistant Professor"
    job.advertisement_no = "ADV-2026-07"
    job.department = "Computer Science"
    job.status = JobStatus.PUBLISHED
    job.application_start_date = datetime.now(UTC) - timedelta(days=10)
    job.application_end_date = datetime.now(UTC) + timedelta(days=20)
    job.required_sections = [
        {"section_type": "personal", "is_mandatory": True},
        {"section_type": "declaration", "is_mandatory": True},
    ]
    job.custom_fields = []
    return job


@pytest.fixture
def blob_store():
    store = AsyncMock()
    store.store = AsyncMock(
        return_value=StoredBlob(url="http://files/new.pdf", id="applications/x/new.pdf")
    )
    store.delete = AsyncMock()
    return store


@pytest.fixture
def set_section_effect():
    """side_effect for repository.set_section that writes to the mock application."""

    async def _set_section(db, app, key, state):
        app.sections = {**(app.sections or {}), key: state}
        return app

    return _set_section
