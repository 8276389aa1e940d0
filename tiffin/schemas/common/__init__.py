from tiffin.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    MessageResponse,
    TimestampMixin,
    UUIDMixin,
)

__all__ = [
    "BaseCreateSchema",
    "BaseResponseSchema",
    "BaseSchema",
    "MessageResponse",
    "TimestampMixin",
    "UUIDMixin",
]
