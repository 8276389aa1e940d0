"""
Base schema classes with common fields and configurations.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "BaseSchema",
    "TimestampMixin",
    "UUIDMixin",
    "BaseCreateSchema",
    "BaseResponseSchema",
    "MessageResponse",
]


class BaseSchema(BaseModel):
    """
    Base schema with common Pydantic configuration.

    Enums stay Enum instances so services receive the same types the
    models use.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=False,
        str_strip_whitespace=True,
    )


class TimestampMixin(BaseModel):
    """Mixin for timestamp fields."""

    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class UUIDMixin(BaseModel):
    """Mixin for UUID primary key."""

    id: str = Field(..., description="Unique identifier")


class BaseCreateSchema(BaseSchema):
    """Base schema for create operations."""
    pass


class BaseResponseSchema(BaseSchema, UUIDMixin):
    """Base schema for API responses."""
    pass


class MessageResponse(BaseSchema):
    """Plain acknowledgement for operations with no payload."""

    message: str
