from onboarding.services.documents.document_mapper import (
    DocumentMapper,
    MappingAction,
    MappingOutcome,
    MappingStatus,
)
from onboarding.services.documents.document_review import review_documents, submit_documents

__all__ = [
    "DocumentMapper",
    "MappingAction",
    "MappingOutcome",
    "MappingStatus",
    "review_documents",
    "submit_documents",
]
