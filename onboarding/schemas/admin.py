"""Admin reporting schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from onboarding.schemas.base import BaseSchema
from onboarding.schemas.enums import FeeStatus, HostelStatus, LmsStatus

__all__ = ["AnalyticsResponse", "StudentSummary"]


class AnalyticsResponse(BaseSchema):
    total_students: int
    completed_onboarding: int
    pending_documents: int
    fee_pending_count: int


class StudentSummary(BaseSchema):
    student_id: str
    full_name: str
    email: Optional[str] = None
    progress_percentage: int
    documents_status: str
    fee_status: FeeStatus
    hostel_status: HostelStatus
    lms_status: LmsStatus
    created_at: Optional[datetime] = None
