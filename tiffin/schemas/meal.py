"""
Meal schedule, pause and slot schemas.
"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import Field

from tiffin.models.base import MealItemType, PauseAction, PauseMealType, SlotType
from tiffin.schemas.common import BaseResponseSchema, BaseSchema

__all__ = [
    "DeliverySlotSummary",
    "MealInstanceResponse",
    "PauseRequest",
    "PauseRecordResponse",
    "SlotReassignRequest",
]


class DeliverySlotSummary(BaseResponseSchema):
    name: str
    slot_type: SlotType
    start_time: time
    end_time: time


class MealInstanceResponse(BaseResponseSchema):
    subscription_id: str
    service_date: date
    item_type: MealItemType
    is_paused: bool
    delivery_group_id: Optional[str] = None
    delivery_slot: DeliverySlotSummary


class PauseRequest(BaseSchema):
    meal_date: date = Field(..., description="Today or tomorrow in service-local time")
    meal_type: PauseMealType = Field(default=PauseMealType.ALL)


class PauseRecordResponse(BaseResponseSchema):
    meal_date: date
    meal_type: PauseMealType
    action: PauseAction
    paused_at: datetime


class SlotReassignRequest(BaseSchema):
    delivery_slot_id: str = Field(..., min_length=1)
