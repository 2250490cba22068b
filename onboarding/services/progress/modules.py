"""
Onboarding modules.

Each module reads its own slice of a StudentProfile and answers the same
questions: what is its status, is it complete, and how to describe it in
one line. The aggregator and the chat responder iterate over the
registered modules instead of branching per module.
"""

from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Dict, List

from onboarding.models.student_profile import StudentProfile
from onboarding.schemas.enums import (
    DocumentStatus,
    FeeStatus,
    HostelStatus,
    LmsStatus,
    ModuleStatus,
)
from onboarding.services.payments.fee_ledger import derive_fee_status, format_amount


class OnboardingModule(ABC):
    key: str = ""
    label: str = ""

    @abstractmethod
    def status(self, profile: StudentProfile) -> str:
        """Module status value as shown to the student."""
        pass

    @abstractmethod
    def is_complete(self, profile: StudentProfile) -> bool:
        pass

    @abstractmethod
    def summarize(self, profile: StudentProfile) -> str:
        """One line for chat replies and progress listings."""
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(key={self.key})>"


class DocumentsModule(OnboardingModule):
    key = "documents"
    label = "Documents"

    def counts(self, profile: StudentProfile) -> Dict[DocumentStatus, int]:
        counts: Dict[DocumentStatus, int] = OrderedDict((status, 0) for status in DocumentStatus)
        for doc in profile.documents:
            counts[doc.status] += 1
        return counts

    def outstanding_rejections(self, profile: StudentProfile):
        """Rejected records whose type has no active replacement."""
        active_types = {doc.document_type for doc in profile.active_documents}
        return [
            doc for doc in profile.documents
            if doc.status == DocumentStatus.REJECTED and doc.document_type not in active_types
        ]

    def status(self, profile: StudentProfile) -> str:
        if not profile.documents:
            return ModuleStatus.NOT_STARTED.value
        if self.outstanding_rejections(profile):
            return ModuleStatus.REJECTED.value

        active = profile.active_documents
        if active and all(doc.status == DocumentStatus.APPROVED for doc in active):
            return ModuleStatus.APPROVED.value
        if active and all(
            doc.status in (DocumentStatus.SUBMITTED, DocumentStatus.APPROVED) for doc in active
        ):
            return ModuleStatus.SUBMITTED.value
        return ModuleStatus.IN_PROGRESS.value

    def is_complete(self, profile: StudentProfile) -> bool:
        return self.status(profile) == ModuleStatus.APPROVED.value

    def summarize(self, profile: StudentProfile) -> str:
        counts = self.counts(profile)
        parts = [f"{count} {status.value}" for status, count in counts.items() if count]
        return ", ".join(parts) if parts else "no documents uploaded"


class FeeModule(OnboardingModule):
    key = "fee"
    label = "Fee Payment"

    def status(self, profile: StudentProfile) -> str:
        return derive_fee_status(profile.fee_paid_amount, profile.fee_total_amount).value

    def is_complete(self, profile: StudentProfile) -> bool:
        return self.status(profile) == FeeStatus.PAID.value

    def summarize(self, profile: StudentProfile) -> str:
        return f"{format_amount(profile.fee_paid_amount)} of {format_amount(profile.fee_total_amount)} paid"


class HostelModule(OnboardingModule):
    key = "hostel"
    label = "Hostel"

    def status(self, profile: StudentProfile) -> str:
        return profile.hostel_status.value

    def is_complete(self, profile: StudentProfile) -> bool:
        return profile.hostel_status == HostelStatus.APPROVED

    def summarize(self, profile: StudentProfile) -> str:
        summary = profile.hostel_status.value.replace("_", " ")
        if profile.hostel_status == HostelStatus.REJECTED and profile.hostel_rejection_reason:
            summary += f" ({profile.hostel_rejection_reason})"
        return summary


class LmsModule(OnboardingModule):
    key = "lms"
    label = "LMS Activation"

    def status(self, profile: StudentProfile) -> str:
        return profile.lms_status.value

    def is_complete(self, profile: StudentProfile) -> bool:
        return profile.lms_status == LmsStatus.ACTIVE

    def summarize(self, profile: StudentProfile) -> str:
        subjects = profile.lms_registered_subjects or []
        if profile.lms_status == LmsStatus.ACTIVE:
            return f"active, {len(subjects)} subject(s) registered"
        return "inactive"


DEFAULT_MODULES: List[OnboardingModule] = [
    DocumentsModule(),
    FeeModule(),
    HostelModule(),
    LmsModule(),
]
