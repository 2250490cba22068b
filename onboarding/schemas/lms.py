"""LMS schemas."""

from __future__ import annotations

from typing import List

from pydantic import Field

from onboarding.schemas.base import BaseRequestSchema, BaseSchema
from onboarding.schemas.profile import LmsState

__all__ = ["SubjectRegistrationRequest", "SubjectRegistrationResponse"]


class SubjectRegistrationRequest(BaseRequestSchema):
    subjects: List[str] = Field(..., description="Subject ids to register")


class SubjectRegistrationResponse(BaseSchema):
    message: str
    added: List[str]
    lms: LmsState
    progress_percentage: int
