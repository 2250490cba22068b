"""Staff document review endpoints."""

from fastapi import APIRouter, Depends

from onboarding.api import deps
from onboarding.core.security import CurrentUser
from onboarding.schemas.document import DocumentReviewRequest, DocumentReviewResponse
from onboarding.schemas.enums import DocumentStatus
from onboarding.schemas.profile import DocumentRecordResponse
from onboarding.services.onboarding_service import OnboardingService

router = APIRouter(prefix="/staff")


@router.put("/documents/{student_id}", response_model=DocumentReviewResponse)
def review_documents(
    student_id: str,
    payload: DocumentReviewRequest,
    current_user: CurrentUser = Depends(deps.get_staff_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    """Approve or reject a student's documents; a rejection needs a reason."""
    view = service.review_documents(
        current_user,
        student_id,
        payload.status,
        document_type=payload.document_type,
        reason=payload.rejection_reason,
    )
    verb = "approved" if payload.status == DocumentStatus.APPROVED else "rejected"
    return DocumentReviewResponse(
        message=f"Documents {verb}",
        student_id=student_id,
        documents=[DocumentRecordResponse.model_validate(doc) for doc in view.profile.documents],
        progress_percentage=view.progress.percentage,
    )
