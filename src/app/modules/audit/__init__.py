"""
Audit module - append-only log of state-changing actions.
"""

from app.modules.audit.models import AuditAction, AuditLog
from app.modules.audit.service import record_event

__all__ = ["AuditAction", "AuditLog", "record_event"]
