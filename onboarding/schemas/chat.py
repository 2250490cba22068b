"""Chat schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from onboarding.schemas.base import BaseRequestSchema, BaseSchema
from onboarding.schemas.enums import ChatSender

__all__ = ["ChatTextRequest", "ChatMessageResponse"]


class ChatTextRequest(BaseRequestSchema):
    message: str = Field(..., min_length=1, max_length=2000, description="Question for the assistant")


class ChatMessageResponse(BaseSchema):
    id: int
    sender: ChatSender
    message: str
    attachment: Optional[str] = None
    created_at: datetime
