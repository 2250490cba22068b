"""
Chat message model.

Append-only per-student conversation log. An integer primary key keeps
insertion order for messages that share a timestamp.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from onboarding.models.base import Base, enum_column, utc_now
from onboarding.schemas.enums import ChatSender


class ChatMessage(Base):
    """Immutable chat event written by the onboarding service."""

    __tablename__ = "chat_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    sender: Mapped[ChatSender] = mapped_column(
        enum_column(ChatSender, "chat_sender_enum"),
        nullable=False,
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    attachment: Mapped[str | None] = mapped_column(
        String(1000),
        nullable=True,
        comment="Stored file path of an uploaded attachment",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<ChatMessage(student_id={self.student_id}, sender={self.sender})>"


__all__ = ["ChatMessage"]
