"""ORM models."""
from onboarding.models.base import Base, BaseModel, TimestampMixin
from onboarding.models.chat_message import ChatMessage
from onboarding.models.student_profile import FeePayment, StudentDocument, StudentProfile

__all__ = [
    "Base",
    "BaseModel",
    "TimestampMixin",
    "ChatMessage",
    "FeePayment",
    "StudentDocument",
    "StudentProfile",
]
