"""
Subscription upgrade schemas.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from tiffin.models.base import MealItemType, UpgradeScope, UpgradeType
from tiffin.schemas.common import BaseCreateSchema, BaseResponseSchema

__all__ = [
    "UpgradeApplyRequest",
    "UpgradeResponse",
]


class UpgradeApplyRequest(BaseCreateSchema):
    upgrade_type: UpgradeType
    scope: UpgradeScope
    meal_type: Optional[MealItemType] = None
    start_date: date
    end_date: date


class UpgradeResponse(BaseResponseSchema):
    subscription_id: str
    upgrade_type: UpgradeType
    scope: UpgradeScope
    meal_type: Optional[MealItemType] = None
    start_date: date
    end_date: date
    price: Decimal
