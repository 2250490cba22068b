"""SQLAlchemy Base class for all models."""
from onboarding.models.base import Base


def import_models():
    """Import all models to register them with SQLAlchemy."""
    from onboarding.models import chat_message, student_profile  # noqa: F401


__all__ = ["Base", "import_models"]
