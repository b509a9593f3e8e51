"""
Authentication and Authorization Module

Provides authentication dependencies for FastAPI endpoints.
Access tokens are issued elsewhere; this module only validates them and
exposes the authenticated principal {id, role} plus role guards.

SECURITY NOTE:
- Development mode auth bypass is ONLY enabled when PYTHON_ENV=development
- Production environments MUST set PYTHON_ENV=production to disable test tokens
"""

import logging
import os
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.security import decode_token

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation
security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for authentication",
)

ADMIN_ROLES = frozenset({"admin", "super_admin"})
REVIEWER_ROLES = frozenset({"admin", "super_admin", "reviewer"})


@dataclass
class CurrentUser:
    """
    Authenticated principal populated from JWT claims.

    Attributes:
        id: User's unique identifier (UUID)
        email: User's email address
        role: applicant, reviewer, admin or super_admin
        name: Display name (optional)
    """

    id: UUID
    email: str
    role: str
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_staff(self) -> bool:
        return self.role in REVIEWER_ROLES

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, email={self.email}, role={self.role})"


def _is_dev_mode_safe() -> bool:
    """
    Check if development mode is safe to enable.

    Requires PYTHON_ENV=development in settings and in the raw environment
    (not production, not staging).
    """
    env_var = os.getenv("PYTHON_ENV", "").lower()

    is_safe = (
        settings.is_development
        and not settings.is_production
        and env_var != "production"
        and env_var != "staging"
    )

    if is_safe:
        logger.warning(
            "SECURITY: Development auth mode is ENABLED. This MUST NOT be used in production!"
        )

    return is_safe


_DEVELOPMENT_MODE = _is_dev_mode_safe()

# Test principals accepted only in development mode
_DEV_USERS = {
    "dev-token": CurrentUser(
        id=UUID("00000000-0000-0000-0000-000000000001"),
        email="admin@recruitment.dev",
        role="admin",
        name="Development Admin",
    ),
    "dev-reviewer-token": CurrentUser(
        id=UUID("00000000-0000-0000-0000-000000000002"),
        email="reviewer@recruitment.dev",
        role="reviewer",
        name="Development Reviewer",
    ),
    "dev-applicant-token": CurrentUser(
        id=UUID("00000000-0000-0000-0000-000000000003"),
        email="applicant@recruitment.dev",
        role="applicant",
        name="Development Applicant",
    ),
}


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _validate_jwt_token(token: str) -> CurrentUser:
    """
    Validate JWT token and extract user claims.

    Raises:
        HTTPException 401: If token is invalid, expired or has bad claims
    """
    if _DEVELOPMENT_MODE and token in _DEV_USERS:
        logger.debug("Development mode: Using test token")
        return _DEV_USERS[token]

    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    token_type = payload.get("type", "access")
    if token_type != "access":
        logger.warning(f"Invalid token type: {token_type}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        user_id_str = payload.get("sub")
        if not user_id_str:
            raise ValueError("Missing 'sub' claim in token")

        return CurrentUser(
            id=UUID(user_id_str),
            email=payload.get("email", ""),
            role=payload.get("role", "applicant"),
            name=payload.get("name"),
        )
    except (ValueError, KeyError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """FastAPI dependency returning any authenticated user."""
    user = await _validate_jwt_token(credentials.credentials)
    logger.debug(f"Authenticated user: {user.id} ({user.role})")
    return user


def _require_roles(user: CurrentUser, allowed: frozenset[str], error: str, message: str) -> None:
    if user.role not in allowed:
        logger.warning(
            f"Access denied: User {user.id} ({user.email}) has role '{user.role}', "
            f"required one of {sorted(allowed)}"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": error, "message": message},
        )


async def get_current_admin_user(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """
    FastAPI dependency for admin-only endpoints.

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
        HTTPException 403: If user is not an admin
    """
    _require_roles(user, ADMIN_ROLES, "ADMIN_ACCESS_REQUIRED", "Admin access is required.")
    return user


async def get_current_reviewer(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """FastAPI dependency for endpoints open to admins and reviewers."""
    _require_roles(
        user, REVIEWER_ROLES, "REVIEWER_ACCESS_REQUIRED", "Reviewer or admin access is required."
    )
    return user


__all__ = [
    "CurrentUser",
    "get_current_user",
    "get_current_admin_user",
    "get_current_reviewer",
]
