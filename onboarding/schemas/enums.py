"""
Enumerations shared by models, schemas and services.
"""

from enum import Enum

__all__ = [
    "UserRole",
    "DocumentType",
    "DocumentStatus",
    "FeeStatus",
    "HostelStatus",
    "LmsStatus",
    "ChatSender",
    "PaymentSource",
    "ModuleStatus",
]


class UserRole(str, Enum):
    """User role enumeration."""

    STUDENT = "student"
    STAFF = "staff"
    ADMIN = "admin"


class DocumentType(str, Enum):
    """Canonical document slots a classified upload can fill."""

    MARKSHEET_10TH = "10th Marksheet"
    MARKSHEET_12TH = "12th Marksheet"
    DIPLOMA_MARKSHEET = "Diploma Marksheet"
    AADHAAR_CARD = "Aadhaar Card"
    PAN_CARD = "PAN Card"
    TRANSFER_CERTIFICATE = "Transfer Certificate"
    CASTE_CERTIFICATE = "Caste Certificate"
    INCOME_CERTIFICATE = "Income Certificate"
    MIGRATION_CERTIFICATE = "Migration Certificate"
    PASSPORT_PHOTO = "Passport Photo"
    SIGNATURE = "Signature"
    OTHER = "Other"

    @classmethod
    def from_label(cls, label: str) -> "DocumentType":
        """Case and whitespace insensitive lookup; unknown labels map to OTHER."""
        normalized = " ".join(str(label or "").split()).lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        return cls.OTHER


class DocumentStatus(str, Enum):
    """Document record status."""

    PENDING = "pending"
    UPLOADED = "uploaded"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


ACTIVE_DOCUMENT_STATUSES = frozenset({
    DocumentStatus.PENDING,
    DocumentStatus.UPLOADED,
    DocumentStatus.SUBMITTED,
    DocumentStatus.APPROVED,
})


class FeeStatus(str, Enum):
    """Fee ledger status."""

    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class HostelStatus(str, Enum):
    """Hostel application status."""

    NOT_APPLIED = "not_applied"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class LmsStatus(str, Enum):
    """Learning management system activation status."""

    INACTIVE = "inactive"
    ACTIVE = "active"


class ChatSender(str, Enum):
    """Author of a chat message."""

    STUDENT = "student"
    ASSISTANT = "assistant"


class PaymentSource(str, Enum):
    """Which gateway callback applied a payment."""

    VERIFY = "verify"
    WEBHOOK = "webhook"


class ModuleStatus(str, Enum):
    """Aggregate status of the documents module."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
