from onboarding.repositories.chat_repository import ChatMessageRepository
from onboarding.repositories.profile_repository import StudentProfileRepository

__all__ = ["ChatMessageRepository", "StudentProfileRepository"]
