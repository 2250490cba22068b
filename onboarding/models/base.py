"""
Base model configuration for SQLAlchemy ORM.

Provides the declarative base, an abstract model with a UUID primary key
and a timestamp mixin shared by every table.
"""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Type
from uuid import uuid4

from sqlalchemy import DateTime, Enum as SQLEnum, String
from sqlalchemy.orm import Mapped, declarative_base, declared_attr, mapped_column

Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def enum_column(enum_cls: Type[Enum], name: str) -> SQLEnum:
    """Store enum values (not member names) so rows read like the API."""
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


class BaseModel(Base):
    """
    Abstract base model with a UUID string primary key and helpers.
    """

    __abstract__ = True

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
        nullable=False,
        comment="Primary key (UUID)",
    )

    @declared_attr
    def __tablename__(cls) -> str:
        """Generate table name from class name."""
        name = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', cls.__name__)
        return re.sub('([a-z0-9])([A-Z])', r'\1_\2', name).lower() + 's'

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


class TimestampMixin:
    """
    Mixin for automatic timestamp tracking.

    Provides created_at and updated_at fields in UTC.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        index=True,
        comment="Record creation timestamp (UTC)",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
        comment="Record last update timestamp (UTC)",
    )


__all__ = ["Base", "BaseModel", "TimestampMixin", "enum_column", "utc_now"]
