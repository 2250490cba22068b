"""Chat message repository: append and read the per-student conversation log."""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from onboarding.models.chat_message import ChatMessage
from onboarding.schemas.enums import ChatSender


class ChatMessageRepository:
    """Append-only access to chat messages."""

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        student_id: str,
        sender: ChatSender,
        message: str,
        attachment: Optional[str] = None,
    ) -> ChatMessage:
        entry = ChatMessage(
            student_id=student_id,
            sender=sender,
            message=message,
            attachment=attachment,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def history(self, student_id: str) -> List[ChatMessage]:
        """Messages oldest first; ties keep insertion order."""
        stmt = (
            select(ChatMessage)
            .where(ChatMessage.student_id == student_id)
            .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
        )
        return list(self.db.execute(stmt).scalars().all())
