"""
Document mapper.

Decides what a classified upload does to a student's document slots:
replace an existing not-yet-submitted record, append a new one, or leave
the profile untouched when the classification is not trustworthy or the
slot is already under review.

Mapping only changes the profile in memory. Files superseded by a
replacement stay on disk until the caller has committed the new paths
and calls ``discard_superseded``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from onboarding.config.settings import settings
from onboarding.core.logging import get_logger
from onboarding.models.base import utc_now
from onboarding.models.student_profile import StudentDocument, StudentProfile
from onboarding.schemas.enums import DocumentStatus, DocumentType
from onboarding.services.classification.classifier import ClassificationResult
from onboarding.services.storage.file_storage import LocalFileStorage, StoredFile

logger = get_logger(__name__)

REPLACEABLE_STATUSES = frozenset({DocumentStatus.PENDING, DocumentStatus.UPLOADED})
LOCKED_STATUSES = frozenset({DocumentStatus.SUBMITTED, DocumentStatus.APPROVED})


class MappingStatus(str, Enum):
    MAPPED = "mapped"
    LOW_CONFIDENCE = "low_confidence"
    LOCKED = "locked"


class MappingAction(str, Enum):
    REPLACED = "replaced"
    APPENDED = "appended"


@dataclass
class MappingOutcome:
    status: MappingStatus
    classification: ClassificationResult
    stored_file: StoredFile
    action: Optional[MappingAction] = None
    document: Optional[StudentDocument] = None
    superseded_path: Optional[str] = None

    @property
    def mapped(self) -> bool:
        return self.status == MappingStatus.MAPPED


class DocumentMapper:
    """
    Map classifications onto a profile's document slots.

    The confidence threshold and the excluded types are policy knobs;
    they default to the configured threshold and ``{Other}``.
    """

    def __init__(
        self,
        storage: LocalFileStorage,
        confidence_threshold: Optional[float] = None,
        excluded_types: Optional[Iterable[DocumentType]] = None,
    ):
        self.storage = storage
        self.confidence_threshold = (
            confidence_threshold
            if confidence_threshold is not None
            else settings.DOCUMENT_CONFIDENCE_THRESHOLD
        )
        self.excluded_types = frozenset(
            excluded_types if excluded_types is not None else {DocumentType.OTHER}
        )

    def discard_superseded(self, outcomes: Iterable[MappingOutcome]) -> None:
        """Delete the files replaced records used to point to; call after the commit."""
        for outcome in outcomes:
            if outcome.superseded_path:
                self.storage.delete(outcome.superseded_path)

    def is_confident(self, classification: ClassificationResult) -> bool:
        return (
            classification.confidence >= self.confidence_threshold
            and classification.document_type not in self.excluded_types
        )

    def map(
        self,
        classification: ClassificationResult,
        stored_file: StoredFile,
        profile: StudentProfile,
    ) -> MappingOutcome:
        if not self.is_confident(classification):
            logger.info(
                "Classification below mapping policy; profile unchanged",
                extra={
                    "student_id": profile.student_id,
                    "document_type": classification.document_type.value,
                    "confidence": classification.confidence,
                },
            )
            return MappingOutcome(MappingStatus.LOW_CONFIDENCE, classification, stored_file)

        existing = profile.find_active_document(classification.document_type)

        if existing is not None and existing.status in LOCKED_STATUSES:
            logger.info(
                "Document slot is under review; upload not mapped",
                extra={
                    "student_id": profile.student_id,
                    "document_type": classification.document_type.value,
                    "status": existing.status.value,
                },
            )
            return MappingOutcome(
                MappingStatus.LOCKED, classification, stored_file, document=existing
            )

        if existing is not None and existing.status in REPLACEABLE_STATUSES:
            superseded = existing.file_path if existing.file_path != stored_file.path else None

            existing.file_path = stored_file.path
            existing.original_name = stored_file.original_name
            existing.mime_type = stored_file.mime_type
            existing.confidence = classification.confidence
            existing.status = DocumentStatus.UPLOADED
            existing.rejection_reason = None
            existing.uploaded_at = utc_now()

            logger.info(
                "Replaced document",
                extra={
                    "student_id": profile.student_id,
                    "document_type": classification.document_type.value,
                },
            )
            return MappingOutcome(
                MappingStatus.MAPPED,
                classification,
                stored_file,
                action=MappingAction.REPLACED,
                document=existing,
                superseded_path=superseded,
            )

        document = StudentDocument(
            position=max((doc.position for doc in profile.documents), default=-1) + 1,
            document_type=classification.document_type,
            file_path=stored_file.path,
            original_name=stored_file.original_name,
            mime_type=stored_file.mime_type,
            confidence=classification.confidence,
            status=DocumentStatus.UPLOADED,
            uploaded_at=utc_now(),
        )
        profile.documents.append(document)

        logger.info(
            "Appended document",
            extra={
                "student_id": profile.student_id,
                "document_type": classification.document_type.value,
            },
        )
        return MappingOutcome(
            MappingStatus.MAPPED,
            classification,
            stored_file,
            action=MappingAction.APPENDED,
            document=document,
        )
