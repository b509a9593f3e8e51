"""
Application Shared Helpers

Small utilities used by the repository and the service layer.
"""

import secrets
from datetime import UTC, datetime

APPLICATION_NUMBER_PREFIX = "APP"


def generate_application_number(now: datetime | None = None) -> str:
    """
    Generate a human-facing application number.

    Format: APP-<year>-<8 uppercase hex chars>, e.g. APP-2026-A3F2D8E1.
    The suffix comes from `secrets`, so numbers are not guessable or sequential.
    Uniqueness is enforced by the database constraint on the column.

    Args:
        now: Reference time for the year component (defaults to current UTC time)

    Returns:
        The application number
    """
    year = (now or datetime.now(UTC)).year
    return f"{APPLICATION_NUMBER_PREFIX}-{year:04d}-{secrets.token_hex(4).upper()}"


def utc_isoformat(value: datetime | None = None) -> str:
    """ISO-8601 timestamp for JSON columns."""
    return (value or datetime.now(UTC)).isoformat()
