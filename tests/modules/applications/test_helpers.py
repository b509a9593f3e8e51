"""
Unit tests for applications helpers module.
"""

import re
from datetime import UTC, datetime

from app.modules.applications.helpers import generate_application_number, utc_isoformat

APPLICATION_NUMBER_RE = re.compile(r"^APP-\d{4}-[0-9A-F]{8}$")


class TestGenerateApplicationNumber:
    def test_format(self):
        for _ in range(50):
            assert APPLICATION_NUMBER_RE.match(generate_application_number())

    def test_uses_reference_year(self):
        number = generate_application_number(datetime(2031, 1, 1, tzinfo=UTC))
        assert number.startswith("APP-2031-")

    def test_defaults_to_current_year(self):
        assert generate_application_number().startswith(f"APP-{datetime.now(UTC).year}-")

    def test_numbers_are_not_sequential(self):
        numbers = {generate_application_number() for _ in range(100)}
        assert len(numbers) == 100


class TestUtcIsoformat:
    def test_explicit_value(self):
        value = datetime(2026, 3, 1, 12, 30, tzinfo=UTC)
        assert utc_isoformat(value) == "2026-03-01T12:30:00+00:00"

    def test_default_is_timezone_aware(self):
        assert datetime.fromisoformat(utc_isoformat()).tzinfo is not None
