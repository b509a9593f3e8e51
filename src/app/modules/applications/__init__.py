"""
Applications Module

Handles a candidate's application for a published job:
1. Draft creation with a frozen snapshot of the job's section requirements
2. Section-by-section data entry and file uploads while unlocked
3. A submission gate that reports every outstanding problem at once
4. Admin-driven review status machine with append-only history

API Endpoints:
- /applications - Applicant endpoints (see router.py)
- /admin/applications - Admin and reviewer endpoints (see admin_router.py)

Application numbers have the form APP-<year>-<8 uppercase hex digits>.
"""

from .admin_router import router as admin_router
from .router import router

__all__ = ["router", "admin_router"]
