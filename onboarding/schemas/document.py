"""
Document upload and review schemas.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from onboarding.schemas.base import BaseRequestSchema, BaseSchema
from onboarding.schemas.enums import DocumentStatus, DocumentType
from onboarding.schemas.profile import DocumentRecordResponse

__all__ = [
    "ClassificationResponse",
    "UploadItemResponse",
    "UploadResponse",
    "ChatUploadResponse",
    "SubmitDocumentsResponse",
    "DocumentReviewRequest",
    "DocumentReviewResponse",
    "build_classification",
    "build_upload_item",
]


class ClassificationResponse(BaseSchema):
    document_type: DocumentType
    confidence: float = Field(..., ge=0, le=100)


class UploadItemResponse(BaseSchema):
    """Outcome of one file in an upload batch."""

    original_name: str
    file_path: Optional[str] = None
    status: str = Field(
        ...,
        description="mapped, low_confidence, locked or error",
    )
    action: Optional[str] = Field(None, description="replaced or appended when mapped")
    mapped: bool = False
    classification: Optional[ClassificationResponse] = None
    message: str
    error: Optional[str] = None


class UploadResponse(BaseSchema):
    message: str
    results: List[UploadItemResponse]
    progress_percentage: int
    documents: List[DocumentRecordResponse] = Field(default_factory=list)


class ChatUploadResponse(BaseSchema):
    """Single-file upload through the chat assistant."""

    message: str
    classification: ClassificationResponse
    file_url: str
    mapped: bool


class SubmitDocumentsResponse(BaseSchema):
    message: str
    submitted: List[DocumentType]
    documents: List[DocumentRecordResponse]


class DocumentReviewRequest(BaseRequestSchema):
    status: DocumentStatus = Field(..., description="approved or rejected")
    document_type: Optional[DocumentType] = Field(
        None,
        description="Review one document type; all active documents when omitted",
    )
    rejection_reason: Optional[str] = Field(None, max_length=1000)


class DocumentReviewResponse(BaseSchema):
    message: str
    student_id: str
    documents: List[DocumentRecordResponse]
    progress_percentage: int


# ----- #
# Builders
# ----- #

def build_classification(result) -> Optional[ClassificationResponse]:
    if result is None:
        return None
    return ClassificationResponse(document_type=result.document_type, confidence=result.confidence)


def build_upload_item(item) -> UploadItemResponse:
    """Render one ``UploadItem`` from the onboarding service."""
    outcome = item.outcome
    return UploadItemResponse(
        original_name=item.original_name,
        file_path=item.stored_file.path if item.stored_file else None,
        status=item.status,
        action=outcome.action.value if outcome is not None and outcome.action is not None else None,
        mapped=item.mapped,
        classification=build_classification(item.classification),
        message=item.message,
        error=item.error.message if item.error is not None else None,
    )
