"""Chat assistant endpoints."""

from typing import List

from fastapi import APIRouter, Depends, File, UploadFile

from onboarding.api import deps
from onboarding.core.security import CurrentUser
from onboarding.schemas.chat import ChatMessageResponse, ChatTextRequest
from onboarding.schemas.document import ChatUploadResponse, build_classification
from onboarding.services.onboarding_service import IncomingFile, OnboardingService

router = APIRouter(prefix="/chat")


@router.post("/upload", response_model=ChatUploadResponse)
def upload_through_chat(
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(deps.get_student_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    """Upload a single document; the assistant's verdict is logged to the chat."""
    incoming = IncomingFile(
        filename=file.filename or "",
        content=file.file.read(),
        content_type=file.content_type,
    )
    item = service.upload_documents(current_user, [incoming]).items[0]
    return ChatUploadResponse(
        message=item.message,
        classification=build_classification(item.classification),
        file_url=item.stored_file.path,
        mapped=item.mapped,
    )


@router.post("/text", response_model=ChatMessageResponse)
def send_text(
    payload: ChatTextRequest,
    current_user: CurrentUser = Depends(deps.get_student_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    """Ask the assistant a question; returns its reply."""
    return service.send_chat_text(current_user, payload.message)


@router.get("/history", response_model=List[ChatMessageResponse])
def chat_history(
    current_user: CurrentUser = Depends(deps.get_student_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    return service.get_chat_history(current_user)
