"""
Audit Log Models
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, String, func
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class AuditAction(str, enum.Enum):
    """Actions recorded in the audit trail."""

    APPLICATION_CREATED = "APPLICATION_CREATED"
    APPLICATION_DELETED = "APPLICATION_DELETED"
    APPLICATION_SUBMITTED = "APPLICATION_SUBMITTED"
    APPLICATION_WITHDRAWN = "APPLICATION_WITHDRAWN"
    APPLICATION_STATUS_CHANGED = "APPLICATION_STATUS_CHANGED"
    APPLICATION_BULK_STATUS_CHANGED = "APPLICATION_BULK_STATUS_CHANGED"
    APPLICATION_REVIEW_NOTES_ADDED = "APPLICATION_REVIEW_NOTES_ADDED"
    APPLICATION_SECTION_VERIFIED = "APPLICATION_SECTION_VERIFIED"
    JOB_CREATED = "JOB_CREATED"
    JOB_PUBLISHED = "JOB_PUBLISHED"
    JOB_CLOSED = "JOB_CLOSED"


class AuditLog(Base):
    """
    Append-only audit entry.

    Rows are never updated; `changes` holds {"before": ..., "after": ...}.
    """

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Null for actions without an authenticated user
    user_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    resource_type: Mapped[str] = mapped_column(String(50), nullable=False)
    resource_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    changes: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_audit_logs_resource", "resource_type", "resource_id"),
        Index("ix_audit_logs_user_id", "user_id"),
        Index("ix_audit_logs_timestamp", "timestamp"),
    )
