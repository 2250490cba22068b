"""Database initialization utilities."""
from onboarding.core.logging import get_logger
from onboarding.db.base import Base, import_models
from onboarding.db.session import engine

logger = get_logger(__name__)


def init_db() -> None:
    """
    Create every table that does not exist yet.

    Suitable for development and testing; production schemas are managed
    outside the service.
    """
    import_models()
    Base.metadata.create_all(bind=engine)
    logger.info(
        "Database tables ensured",
        extra={"tables": sorted(Base.metadata.tables.keys())},
    )


def drop_db() -> None:
    """
    Drop all database tables.

    WARNING: This will delete all data! Only for development/testing purposes.
    """
    import_models()
    Base.metadata.drop_all(bind=engine)
    logger.warning("All database tables dropped")
