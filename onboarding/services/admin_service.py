"""
Admin reporting over onboarding profiles: student listing, headline
counts, hostel applications and the payment ledger.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from onboarding.models.student_profile import FeePayment, StudentProfile
from onboarding.repositories.profile_repository import StudentProfileRepository
from onboarding.schemas.enums import DocumentStatus, FeeStatus, HostelStatus
from onboarding.services.base_service import BaseService
from onboarding.services.payments.fee_ledger import derive_fee_status
from onboarding.services.progress.aggregator import compute_progress
from onboarding.services.progress.modules import DEFAULT_MODULES, OnboardingModule

AWAITING_REVIEW = [DocumentStatus.PENDING, DocumentStatus.UPLOADED, DocumentStatus.SUBMITTED]


@dataclass
class Analytics:
    total_students: int
    completed_onboarding: int
    pending_documents: int
    fee_pending_count: int


class AdminService(BaseService):
    """Read-only reporting; every count is recomputed from current state."""

    def __init__(
        self,
        db_session: Session,
        modules: Sequence[OnboardingModule] = DEFAULT_MODULES,
        weights: Optional[Dict[str, float]] = None,
    ):
        super().__init__(db_session)
        self.profiles = StudentProfileRepository(db_session)
        self.modules = modules
        self.weights = weights

    def list_students(self, offset: int = 0, limit: Optional[int] = None) -> List[StudentProfile]:
        return self.profiles.list_profiles(offset=offset, limit=limit)

    def analytics(self) -> Analytics:
        profiles = self.profiles.list_profiles()
        completed = sum(
            1 for profile in profiles
            if compute_progress(profile, self.modules, self.weights).percentage >= 100
        )
        fee_pending = sum(
            1 for profile in profiles
            if derive_fee_status(profile.fee_paid_amount, profile.fee_total_amount) != FeeStatus.PAID
        )
        result = Analytics(
            total_students=len(profiles),
            completed_onboarding=completed,
            pending_documents=self.profiles.count_documents_with_status(AWAITING_REVIEW),
            fee_pending_count=fee_pending,
        )
        self._logger.debug("Analytics computed", extra=result.__dict__)
        return result

    def list_hostel_applications(self, status: Optional[HostelStatus] = None) -> List[StudentProfile]:
        return self.profiles.list_hostel_applications(status)

    def list_payments(
        self,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[Tuple[FeePayment, StudentProfile]]:
        return self.profiles.list_payments(offset=offset, limit=limit)
