"""
Student profile schemas.

Response payloads for the profile aggregate and its four onboarding
modules, plus the progress breakdown.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import EmailStr, Field

from onboarding.schemas.base import BaseRequestSchema, BaseSchema, MoneyAmount
from onboarding.schemas.enums import (
    DocumentStatus,
    DocumentType,
    FeeStatus,
    HostelStatus,
    LmsStatus,
    PaymentSource,
)

__all__ = [
    "ProfileCreate",
    "DocumentRecordResponse",
    "FeePaymentResponse",
    "FeeState",
    "HostelState",
    "LmsState",
    "ModuleProgressResponse",
    "ProgressResponse",
    "ProfileResponse",
    "build_fee_state",
    "build_hostel_state",
    "build_lms_state",
    "build_profile_response",
    "build_progress",
]


class ProfileCreate(BaseRequestSchema):
    """Create (or fetch) the caller's onboarding profile."""

    full_name: Optional[str] = Field(
        None,
        max_length=255,
        description="Display name; defaults to the name in the caller token",
    )
    email: Optional[EmailStr] = Field(
        None,
        description="Contact email; defaults to the email in the caller token",
    )


class DocumentRecordResponse(BaseSchema):
    id: str
    document_type: DocumentType
    file_path: str
    original_name: str
    mime_type: Optional[str] = None
    status: DocumentStatus
    rejection_reason: Optional[str] = None
    confidence: Optional[float] = None
    uploaded_at: datetime


class FeePaymentResponse(BaseSchema):
    sequence: int
    amount: MoneyAmount
    paid_at: datetime
    transaction_id: str
    order_id: str
    source: PaymentSource


class FeeState(BaseSchema):
    total_amount: MoneyAmount = Field(..., description="Total fee due")
    paid_amount: MoneyAmount = Field(..., description="Sum of applied payments")
    remaining: MoneyAmount = Field(..., description="max(0, total - paid)")
    status: FeeStatus
    currency: str = "INR"
    transaction_id: Optional[str] = None
    order_id: Optional[str] = None
    history: List[FeePaymentResponse] = Field(default_factory=list)


class HostelState(BaseSchema):
    status: HostelStatus
    gender: Optional[str] = None
    room_type: Optional[str] = None
    rejection_reason: Optional[str] = None
    applied_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None


class LmsState(BaseSchema):
    status: LmsStatus
    registered_subjects: List[str] = Field(default_factory=list)
    activated_at: Optional[datetime] = None


class ModuleProgressResponse(BaseSchema):
    key: str
    label: str
    status: str
    complete: bool
    weight: float
    summary: str = ""


class ProgressResponse(BaseSchema):
    percentage: int = Field(..., ge=0, le=100)
    modules: List[ModuleProgressResponse] = Field(default_factory=list)


class ProfileResponse(BaseSchema):
    student_id: str
    full_name: str
    email: Optional[str] = None
    documents: List[DocumentRecordResponse] = Field(default_factory=list)
    fee: FeeState
    hostel: HostelState
    lms: LmsState
    progress_percentage: int
    progress: ProgressResponse
    created_at: Optional[datetime] = None


# ----- #
# Builders
# ----- #

def build_fee_state(profile, remaining: Decimal, status: FeeStatus, currency: str = "INR") -> FeeState:
    return FeeState(
        total_amount=profile.fee_total_amount,
        paid_amount=profile.fee_paid_amount,
        remaining=remaining,
        status=status,
        currency=currency,
        transaction_id=profile.fee_transaction_id,
        order_id=profile.fee_order_id,
        history=[FeePaymentResponse.model_validate(entry) for entry in profile.payments],
    )


def build_hostel_state(profile) -> HostelState:
    return HostelState(
        status=profile.hostel_status,
        gender=profile.hostel_gender,
        room_type=profile.hostel_room_type,
        rejection_reason=profile.hostel_rejection_reason,
        applied_at=profile.hostel_applied_at,
        decided_at=profile.hostel_decided_at,
    )


def build_lms_state(profile) -> LmsState:
    return LmsState(
        status=profile.lms_status,
        registered_subjects=list(profile.lms_registered_subjects or []),
        activated_at=profile.lms_activated_at,
    )


def build_progress(report) -> ProgressResponse:
    return ProgressResponse(
        percentage=report.percentage,
        modules=[ModuleProgressResponse.model_validate(entry) for entry in report.modules],
    )


def build_profile_response(view) -> ProfileResponse:
    """Render a ``ProfileView`` (profile, progress report, fee summary)."""
    profile = view.profile
    fee = view.fee
    return ProfileResponse(
        student_id=profile.student_id,
        full_name=profile.full_name,
        email=profile.email,
        documents=[DocumentRecordResponse.model_validate(doc) for doc in profile.documents],
        fee=build_fee_state(profile, fee["remaining"], fee["status"], fee["currency"]),
        hostel=build_hostel_state(profile),
        lms=build_lms_state(profile),
        progress_percentage=view.progress.percentage,
        progress=build_progress(view.progress),
        created_at=profile.created_at,
    )
