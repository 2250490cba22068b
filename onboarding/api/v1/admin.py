"""Admin reporting and hostel decision endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from onboarding.api import deps
from onboarding.core.security import CurrentUser
from onboarding.schemas.admin import AnalyticsResponse, StudentSummary
from onboarding.schemas.enums import HostelStatus
from onboarding.schemas.hostel import (
    HostelApplicationResponse,
    HostelDecisionRequest,
    HostelDecisionResponse,
)
from onboarding.schemas.payment import PaymentListItem
from onboarding.schemas.profile import build_hostel_state
from onboarding.services.onboarding_service import OnboardingService

router = APIRouter(prefix="/admin")


@router.get("/students", response_model=List[StudentSummary])
def list_students(
    offset: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1, le=500),
    current_user: CurrentUser = Depends(deps.get_admin_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    return [
        StudentSummary(
            student_id=view.profile.student_id,
            full_name=view.profile.full_name,
            email=view.profile.email,
            progress_percentage=view.progress.percentage,
            documents_status=view.progress.module("documents").status,
            fee_status=view.fee["status"],
            hostel_status=view.profile.hostel_status,
            lms_status=view.profile.lms_status,
            created_at=view.profile.created_at,
        )
        for view in service.list_students(offset, limit)
    ]


@router.get("/analytics", response_model=AnalyticsResponse)
def analytics(
    current_user: CurrentUser = Depends(deps.get_admin_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    return service.analytics()


@router.get("/hostel-applications", response_model=List[HostelApplicationResponse])
def list_hostel_applications(
    status: Optional[HostelStatus] = Query(None, description="Filter by application status"),
    current_user: CurrentUser = Depends(deps.get_admin_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    return [
        HostelApplicationResponse(
            student_id=profile.student_id,
            name=profile.full_name,
            email=profile.email,
            hostel=build_hostel_state(profile),
        )
        for profile in service.list_hostel_applications(status)
    ]


@router.put("/hostel-applications/{student_id}", response_model=HostelDecisionResponse)
def decide_hostel_application(
    student_id: str,
    payload: HostelDecisionRequest,
    current_user: CurrentUser = Depends(deps.get_admin_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    view = service.decide_hostel_application(
        current_user, student_id, payload.status, payload.rejection_reason
    )
    return HostelDecisionResponse(
        message=f"Hostel application {payload.status.value}",
        student_id=student_id,
        hostel=build_hostel_state(view.profile),
    )


@router.get("/payments", response_model=List[PaymentListItem])
def list_payments(
    offset: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1, le=500),
    current_user: CurrentUser = Depends(deps.get_admin_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    return [
        PaymentListItem(
            student_id=profile.student_id,
            student_name=profile.full_name,
            amount=payment.amount,
            paid_at=payment.paid_at,
            transaction_id=payment.transaction_id,
            order_id=payment.order_id,
            source=payment.source,
        )
        for payment, profile in service.list_payments(offset, limit)
    ]
