"""Hostel application endpoints for students."""

from fastapi import APIRouter, Depends

from onboarding.api import deps
from onboarding.core.security import CurrentUser
from onboarding.schemas.hostel import HostelApplyRequest
from onboarding.schemas.profile import HostelState, build_hostel_state
from onboarding.services.onboarding_service import OnboardingService

router = APIRouter(prefix="/hostel")


@router.post("/apply", response_model=HostelState)
def apply_for_hostel(
    payload: HostelApplyRequest,
    current_user: CurrentUser = Depends(deps.get_student_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    view = service.apply_for_hostel(current_user, payload.gender, payload.room_type)
    return build_hostel_state(view.profile)
