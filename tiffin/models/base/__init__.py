"""
Base models package.

Provides base classes, custom types and enums for all database models.
"""

from tiffin.models.base.base_model import Base, BaseModel, TimestampModel, new_id
from tiffin.models.base.types import enum_column_type
from tiffin.models.base.enums import (
    DEFAULT_SLOT_FOR_ITEM,
    ContainerType,
    CuisineType,
    CurryOrderStatus,
    DietType,
    MealItemType,
    PauseAction,
    PauseMealType,
    SlotType,
    SubscriptionStatus,
    UpgradeScope,
    UpgradeType,
)

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "new_id",
    "enum_column_type",
    "DEFAULT_SLOT_FOR_ITEM",
    "ContainerType",
    "CuisineType",
    "CurryOrderStatus",
    "DietType",
    "MealItemType",
    "PauseAction",
    "PauseMealType",
    "SlotType",
    "SubscriptionStatus",
    "UpgradeScope",
    "UpgradeType",
]
