"""LMS subject registration endpoints."""

from fastapi import APIRouter, Depends

from onboarding.api import deps
from onboarding.core.security import CurrentUser
from onboarding.schemas.lms import SubjectRegistrationRequest, SubjectRegistrationResponse
from onboarding.schemas.profile import build_lms_state
from onboarding.services.onboarding_service import OnboardingService

router = APIRouter(prefix="/lms")


@router.post("/subjects", response_model=SubjectRegistrationResponse)
def register_subjects(
    payload: SubjectRegistrationRequest,
    current_user: CurrentUser = Depends(deps.get_student_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    added, view = service.register_subjects(current_user, payload.subjects)
    return SubjectRegistrationResponse(
        message=f"Registered {len(added)} new subject(s)",
        added=added,
        lms=build_lms_state(view.profile),
        progress_percentage=view.progress.percentage,
    )
