"""
Document submission and staff review.

Students move their uploaded documents into review with ``submit``; staff
and admins then approve or reject them with ``review``.
"""

from dataclasses import dataclass
from typing import List, Optional

from onboarding.core.exceptions import ResourceNotFoundError, ValidationError
from onboarding.core.logging import get_audit_logger, get_logger
from onboarding.core.security import STAFF_ROLES, CurrentUser, ensure_role
from onboarding.models.student_profile import StudentDocument, StudentProfile
from onboarding.schemas.enums import DocumentStatus, DocumentType

logger = get_logger(__name__)
audit_logger = get_audit_logger()

SUBMITTABLE_STATUSES = frozenset({DocumentStatus.PENDING, DocumentStatus.UPLOADED})
REVIEWABLE_STATUSES = frozenset({
    DocumentStatus.PENDING,
    DocumentStatus.UPLOADED,
    DocumentStatus.SUBMITTED,
    DocumentStatus.APPROVED,
})
DECISION_STATUSES = frozenset({DocumentStatus.APPROVED, DocumentStatus.REJECTED})


@dataclass
class ReviewResult:
    status: DocumentStatus
    documents: List[StudentDocument]


def submit_documents(profile: StudentProfile) -> List[StudentDocument]:
    """Move every pending or uploaded document into ``submitted``."""
    ready = [doc for doc in profile.documents if doc.status in SUBMITTABLE_STATUSES]
    if not ready:
        raise ValidationError(
            "There are no uploaded documents to submit",
            {"documents": ["Upload at least one document before submitting"]},
        )

    for doc in ready:
        doc.status = DocumentStatus.SUBMITTED

    logger.info(
        "Documents submitted for review",
        extra={"student_id": profile.student_id, "count": len(ready)},
    )
    return ready


def review_documents(
    profile: StudentProfile,
    status: DocumentStatus,
    actor: CurrentUser,
    document_type: Optional[DocumentType] = None,
    reason: Optional[str] = None,
) -> ReviewResult:
    """
    Approve or reject one document type, or every active document when no
    type is given. Rejection requires a reason.
    """
    ensure_role(actor, STAFF_ROLES)

    if status not in DECISION_STATUSES:
        raise ValidationError(
            "Status must be approved or rejected",
            {"status": [f"'{status.value}' is not a review decision"]},
        )

    reason = (reason or "").strip() or None
    if status == DocumentStatus.REJECTED and not reason:
        raise ValidationError(
            "A rejection reason is required",
            {"rejectionReason": ["Provide a reason for rejecting the document"]},
        )

    targets = [
        doc for doc in profile.documents
        if doc.status in REVIEWABLE_STATUSES
        and (document_type is None or doc.document_type == document_type)
    ]
    if not targets:
        raise ResourceNotFoundError(
            "StudentDocument",
            document_type.value if document_type else None,
            message="No documents awaiting review",
        )

    for doc in targets:
        doc.status = status
        doc.rejection_reason = reason if status == DocumentStatus.REJECTED else None

    audit_logger.info(
        "document_review",
        student_id=profile.student_id,
        decision=status.value,
        document_types=[doc.document_type.value for doc in targets],
        actor_id=actor.id,
        actor_role=actor.role.value,
    )
    return ReviewResult(status=status, documents=targets)
