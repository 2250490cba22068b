"""Hostel application schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from onboarding.schemas.base import BaseRequestSchema, BaseSchema
from onboarding.schemas.enums import HostelStatus
from onboarding.schemas.profile import HostelState

__all__ = [
    "HostelApplyRequest",
    "HostelDecisionRequest",
    "HostelApplicationResponse",
    "HostelDecisionResponse",
]


class HostelApplyRequest(BaseRequestSchema):
    gender: Optional[str] = Field(None, max_length=20)
    room_type: Optional[str] = Field(None, max_length=50, description="e.g. single, double, triple")


class HostelDecisionRequest(BaseRequestSchema):
    status: HostelStatus = Field(..., description="approved or rejected")
    rejection_reason: Optional[str] = Field(None, max_length=1000)


class HostelApplicationResponse(BaseSchema):
    student_id: str
    name: str
    email: Optional[str] = None
    hostel: HostelState


class HostelDecisionResponse(BaseSchema):
    message: str
    student_id: str
    hostel: HostelState
