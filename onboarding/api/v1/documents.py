"""Document upload and submission endpoints."""

from typing import List

from fastapi import APIRouter, Depends, File, UploadFile

from onboarding.api import deps
from onboarding.core.security import CurrentUser
from onboarding.schemas.document import SubmitDocumentsResponse, UploadResponse, build_upload_item
from onboarding.schemas.profile import DocumentRecordResponse
from onboarding.services.onboarding_service import IncomingFile, OnboardingService

router = APIRouter(prefix="/documents")


def read_uploads(files: List[UploadFile]) -> List[IncomingFile]:
    return [
        IncomingFile(filename=upload.filename or "", content=upload.file.read(), content_type=upload.content_type)
        for upload in files
    ]


@router.post("/upload", response_model=UploadResponse)
def upload_documents(
    files: List[UploadFile] = File(..., description="One or more documents"),
    current_user: CurrentUser = Depends(deps.get_student_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    """
    Classify and file each uploaded document, in upload order.

    Files the classifier is not confident about are stored and reported
    but leave the profile unchanged.
    """
    batch = service.upload_documents(current_user, read_uploads(files))
    return UploadResponse(
        message=batch.message,
        results=[build_upload_item(item) for item in batch.items],
        progress_percentage=batch.view.progress.percentage,
        documents=[DocumentRecordResponse.model_validate(doc) for doc in batch.view.profile.documents],
    )


@router.post("/submit", response_model=SubmitDocumentsResponse)
def submit_documents(
    current_user: CurrentUser = Depends(deps.get_student_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    submitted = service.submit_documents(current_user)
    profile = service.get_profile(current_user.id).profile
    return SubmitDocumentsResponse(
        message="Documents submitted for review",
        submitted=[doc.document_type for doc in submitted],
        documents=[DocumentRecordResponse.model_validate(doc) for doc in profile.documents],
    )
