"""Database session management."""
from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from onboarding.config.settings import settings


def _engine_options(url: str) -> Dict[str, Any]:
    if not url.startswith("sqlite"):
        return {
            "pool_pre_ping": True,
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_POOL_OVERFLOW,
        }

    options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    # In-memory databases live per connection, so every session shares one
    if url in ("sqlite://", "sqlite:///:memory:") or ":memory:" in url:
        options["poolclass"] = StaticPool
    return options


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency function that yields a database session.

    Usage in FastAPI endpoints:
        @router.get("/items/")
        def read_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
