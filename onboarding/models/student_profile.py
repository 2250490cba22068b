"""
Student onboarding profile model.

One profile per student, keyed by the caller identity. The profile carries
the four onboarding modules: documents, fee, hostel and LMS. Documents and
fee payments live in child tables so the payment history can be protected
by a unique transaction id constraint.
"""

from datetime import datetime
from decimal import Decimal
from typing import List

from sqlalchemy import (
    JSON,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from onboarding.models.base import BaseModel, TimestampMixin, enum_column, utc_now
from onboarding.schemas.enums import (
    ACTIVE_DOCUMENT_STATUSES,
    DocumentStatus,
    DocumentType,
    FeeStatus,
    HostelStatus,
    LmsStatus,
    PaymentSource,
)


class StudentProfile(BaseModel, TimestampMixin):
    """
    Authoritative onboarding record for one student.

    Module states:
        documents: StudentDocument rows, at most one active row per type
        fee:       total/paid amounts, derived status, FeePayment history
        hostel:    application status and adjudication details
        lms:       activation status and registered subjects
    """

    __tablename__ = "student_profiles"

    student_id: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
        comment="Caller identity that owns this profile",
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Fee
    fee_total_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
        comment="Total fee due (major currency units)",
    )
    fee_paid_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
        comment="Sum of applied payments",
    )
    fee_status: Mapped[FeeStatus] = mapped_column(
        enum_column(FeeStatus, "fee_status_enum"),
        nullable=False,
        default=FeeStatus.UNPAID,
    )
    fee_transaction_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    fee_order_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    fee_signature: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Hostel
    hostel_status: Mapped[HostelStatus] = mapped_column(
        enum_column(HostelStatus, "hostel_status_enum"),
        nullable=False,
        default=HostelStatus.NOT_APPLIED,
        index=True,
    )
    hostel_gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    hostel_room_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    hostel_rejection_reason: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Present only while hostel_status is rejected",
    )
    hostel_applied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    hostel_decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    hostel_decided_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # LMS
    lms_status: Mapped[LmsStatus] = mapped_column(
        enum_column(LmsStatus, "lms_status_enum"),
        nullable=False,
        default=LmsStatus.INACTIVE,
    )
    lms_registered_subjects: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Registered subject ids in insertion order",
    )
    lms_activated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    progress_percentage: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Cached aggregator result; reads recompute",
    )

    documents: Mapped[List["StudentDocument"]] = relationship(
        back_populates="profile",
        cascade="all, delete-orphan",
        order_by="StudentDocument.position",
        lazy="selectin",
    )
    payments: Mapped[List["FeePayment"]] = relationship(
        back_populates="profile",
        cascade="all, delete-orphan",
        order_by="FeePayment.sequence",
        lazy="selectin",
    )

    # ----- #
    # Convenience accessors
    # ----- #

    @property
    def active_documents(self) -> List["StudentDocument"]:
        return [doc for doc in self.documents if doc.status in ACTIVE_DOCUMENT_STATUSES]

    def find_active_document(self, document_type: DocumentType) -> "StudentDocument | None":
        for doc in self.documents:
            if doc.document_type == document_type and doc.status in ACTIVE_DOCUMENT_STATUSES:
                return doc
        return None

    def __repr__(self) -> str:
        return f"<StudentProfile(student_id={self.student_id})>"


class StudentDocument(BaseModel, TimestampMixin):
    """A classified upload occupying one document slot."""

    __tablename__ = "student_documents"

    profile_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("student_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Order within the profile's document sequence",
    )
    document_type: Mapped[DocumentType] = mapped_column(
        enum_column(DocumentType, "document_type_enum"),
        nullable=False,
        index=True,
    )
    file_path: Mapped[str] = mapped_column(String(1000), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[DocumentStatus] = mapped_column(
        enum_column(DocumentStatus, "document_status_enum"),
        nullable=False,
        default=DocumentStatus.UPLOADED,
        index=True,
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    profile: Mapped[StudentProfile] = relationship(back_populates="documents")

    def __repr__(self) -> str:
        return f"<StudentDocument(type={self.document_type}, status={self.status})>"


class FeePayment(BaseModel, TimestampMixin):
    """Immutable ledger entry for one applied gateway payment."""

    __tablename__ = "fee_payments"
    __table_args__ = (
        UniqueConstraint("transaction_id", name="uq_fee_payments_transaction_id"),
    )

    profile_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("student_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    paid_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    transaction_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Gateway payment id",
    )
    order_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    source: Mapped[PaymentSource] = mapped_column(
        enum_column(PaymentSource, "payment_source_enum"),
        nullable=False,
        default=PaymentSource.VERIFY,
    )

    profile: Mapped[StudentProfile] = relationship(back_populates="payments")

    def __repr__(self) -> str:
        return f"<FeePayment(transaction_id={self.transaction_id}, amount={self.amount})>"


__all__ = ["StudentProfile", "StudentDocument", "FeePayment"]
