"""
Base schema classes with common fields and configurations.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

__all__ = [
    "BaseSchema",
    "BaseRequestSchema",
    "MoneyAmount",
]


class BaseSchema(BaseModel):
    """
    Base schema with common Pydantic configuration.

    Responses are serialized with camelCase keys to match the client
    contract; snake_case names remain accepted on input.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=False,
        arbitrary_types_allowed=True,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class BaseRequestSchema(BaseSchema):
    """Base schema for request bodies; unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")


# Amounts are Decimal internally and plain JSON numbers on the wire
MoneyAmount = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
