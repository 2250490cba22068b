from onboarding.services.chat.responder import (
    DEFAULT_MESSAGE,
    GREETING_MESSAGE,
    INTENTS,
    Intent,
    match_intent,
    respond,
)

__all__ = ["DEFAULT_MESSAGE", "GREETING_MESSAGE", "INTENTS", "Intent", "match_intent", "respond"]
