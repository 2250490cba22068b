"""Student profile endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, status

from onboarding.api import deps
from onboarding.core.security import CurrentUser
from onboarding.schemas.profile import ProfileCreate, ProfileResponse, build_profile_response
from onboarding.services.onboarding_service import OnboardingService

router = APIRouter(prefix="/profile")


@router.post("", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
def create_profile(
    payload: Optional[ProfileCreate] = None,
    current_user: CurrentUser = Depends(deps.get_student_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    """Create the caller's onboarding profile. Repeat calls return the existing one."""
    payload = payload or ProfileCreate()
    view = service.create_profile(current_user, payload.full_name, payload.email)
    return build_profile_response(view)


@router.get("", response_model=ProfileResponse)
def read_profile(
    current_user: CurrentUser = Depends(deps.get_student_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    return build_profile_response(service.get_profile(current_user.id))
