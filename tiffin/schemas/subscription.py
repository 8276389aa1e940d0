"""
Subscription request/response schemas.
"""

from datetime import date
from typing import Optional

from pydantic import Field

from tiffin.models.base import ContainerType, CuisineType, DietType, SubscriptionStatus
from tiffin.models.subscription import Subscription
from tiffin.schemas.common import BaseCreateSchema, BaseResponseSchema

__all__ = [
    "SubscriptionCreate",
    "PackageSummary",
    "SubscriptionResponse",
]


class SubscriptionCreate(BaseCreateSchema):
    package_id: str = Field(..., min_length=1, description="Meal package to subscribe to")
    address_id: str = Field(..., min_length=1, description="Delivery address owned by the caller")
    container_type: Optional[ContainerType] = Field(
        default=None,
        description="Requested container; ignored when the package offers no choice",
    )
    start_date: date


class PackageSummary(BaseResponseSchema):
    name: str
    diet_type: DietType
    cuisine_type: CuisineType
    duration_days: int


class SubscriptionResponse(BaseResponseSchema):
    user_id: str
    package: PackageSummary
    address_id: str
    container_type: ContainerType
    start_date: date
    end_date: date
    status: SubscriptionStatus
    days_remaining: int = 0

    @classmethod
    def from_entity(cls, subscription: Subscription, today: date) -> "SubscriptionResponse":
        response = cls.model_validate(subscription)
        response.days_remaining = subscription.remaining_days_on(today)
        return response
