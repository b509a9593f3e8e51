"""
Audit Trail Writer

State-changing operations emit one event each after their own transaction
has committed. The write uses a separate session, and a failure here is
logged and swallowed: the business operation has already succeeded.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Request

from app.core.database import async_session_maker
from app.modules.audit.models import AuditAction, AuditLog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """Client details attached to audit events."""

    ip_address: str | None = None
    user_agent: str | None = None


def request_context(request: Request) -> RequestContext:
    """FastAPI dependency extracting client IP (proxy aware) and user agent."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else None

    return RequestContext(
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent"),
    )


async def record_event(
    *,
    user_id: UUID | None,
    action: AuditAction,
    resource_type: str,
    resource_id: str | UUID | None = None,
    changes: dict | None = None,
    context: RequestContext | None = None,
) -> bool:
    """
    Persist an audit event.

    Returns:
        True if written, False if the write failed (already logged)
    """
    context = context or RequestContext()

    try:
        async with async_session_maker() as session:
            session.add(
                AuditLog(
                    user_id=user_id,
                    action=action.value,
                    resource_type=resource_type,
                    resource_id=str(resource_id) if resource_id is not None else None,
                    changes=changes or {},
                    ip_address=context.ip_address,
                    user_agent=context.user_agent,
                )
            )
            await session.commit()
        return True
    except Exception as e:
        logger.error(
            f"[AUDIT LOG ERROR] action={action.value} resource={resource_type}:{resource_id} "
            f"user={user_id}: {e}"
        )
        return False
