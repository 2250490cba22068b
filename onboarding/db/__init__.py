"""Database engine, session factory and schema helpers."""
from onboarding.db.session import SessionLocal, engine, get_db

__all__ = ["SessionLocal", "engine", "get_db"]
