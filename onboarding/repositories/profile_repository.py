"""
Student profile repository.

Query surface for onboarding profiles, their document rows and the
payment ledger.
"""

from typing import Any, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from onboarding.models.student_profile import FeePayment, StudentDocument, StudentProfile
from onboarding.schemas.enums import DocumentStatus, HostelStatus


class StudentProfileRepository:
    """Persistence operations for StudentProfile aggregates."""

    def __init__(self, db: Session):
        """Initialize repository with database session."""
        self.db = db

    # ============================================================================
    # CORE CRUD OPERATIONS
    # ============================================================================

    def create(self, profile_data: dict[str, Any]) -> StudentProfile:
        profile = StudentProfile(**profile_data)
        self.db.add(profile)
        self.db.flush()
        return profile

    def find_by_student_id(self, student_id: str) -> Optional[StudentProfile]:
        stmt = select(StudentProfile).where(StudentProfile.student_id == student_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def save(self, profile: StudentProfile) -> StudentProfile:
        """Stage pending changes on the profile and flush them."""
        self.db.add(profile)
        self.db.flush()
        return profile

    # ============================================================================
    # LISTINGS
    # ============================================================================

    def list_profiles(self, offset: int = 0, limit: Optional[int] = None) -> List[StudentProfile]:
        """Newest profiles first."""
        stmt = (
            select(StudentProfile)
            .order_by(StudentProfile.created_at.desc(), StudentProfile.student_id)
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def list_hostel_applications(
        self,
        status: Optional[HostelStatus] = None,
    ) -> List[StudentProfile]:
        """Profiles that have applied for hostel, optionally filtered by status."""
        stmt = select(StudentProfile).where(StudentProfile.hostel_status != HostelStatus.NOT_APPLIED)
        if status is not None:
            stmt = stmt.where(StudentProfile.hostel_status == status)
        stmt = stmt.order_by(StudentProfile.hostel_applied_at.desc())
        return list(self.db.execute(stmt).scalars().all())

    def count_documents_with_status(self, statuses: List[DocumentStatus]) -> int:
        stmt = select(func.count(StudentDocument.id)).where(StudentDocument.status.in_(statuses))
        return self.db.execute(stmt).scalar_one()

    # ============================================================================
    # PAYMENT LEDGER
    # ============================================================================

    def find_payment_by_transaction_id(self, transaction_id: str) -> Optional[FeePayment]:
        stmt = select(FeePayment).where(FeePayment.transaction_id == transaction_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_payments(
        self,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[Tuple[FeePayment, StudentProfile]]:
        """Every applied payment with its owning profile, most recent first."""
        stmt = (
            select(FeePayment, StudentProfile)
            .join(StudentProfile, FeePayment.profile_id == StudentProfile.id)
            .order_by(FeePayment.paid_at.desc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return [(payment, profile) for payment, profile in self.db.execute(stmt).all()]
