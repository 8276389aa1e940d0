"""
Delivery group schemas.
"""

from datetime import date
from typing import List

from pydantic import Field

from tiffin.models.delivery import DeliveryGroup
from tiffin.schemas.common import BaseCreateSchema, BaseResponseSchema
from tiffin.schemas.meal import DeliverySlotSummary

__all__ = [
    "DeliveryGroupCreate",
    "DeliveryGroupResponse",
]


class DeliveryGroupCreate(BaseCreateSchema):
    service_date: date
    delivery_slot_id: str = Field(..., min_length=1)
    meal_instance_ids: List[str] = Field(default_factory=list)
    curry_order_ids: List[str] = Field(default_factory=list)


class DeliveryGroupResponse(BaseResponseSchema):
    user_id: str
    service_date: date
    delivery_slot: DeliverySlotSummary
    meal_instance_ids: List[str] = Field(default_factory=list)
    curry_order_ids: List[str] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, group: DeliveryGroup) -> "DeliveryGroupResponse":
        return cls(
            id=group.id,
            user_id=group.user_id,
            service_date=group.service_date,
            delivery_slot=DeliverySlotSummary.model_validate(group.delivery_slot),
            meal_instance_ids=[m.id for m in group.meal_instances],
            curry_order_ids=[o.id for o in group.curry_orders],
        )
