"""
Models Package

Exports all database models for use throughout the application.
"""

from tiffin.models.base import Base
from tiffin.models.catalog import Address, DeliverySlot, MealPackage, TokenPackage, UpgradePrice
from tiffin.models.subscription import Subscription, SubscriptionUpgrade
from tiffin.models.meal import MealInstance, PauseRecord
from tiffin.models.delivery import DeliveryGroup
from tiffin.models.curry import CurryOrder, CurryWallet

__all__ = [
    "Base",
    "Address",
    "DeliverySlot",
    "MealPackage",
    "TokenPackage",
    "UpgradePrice",
    "Subscription",
    "SubscriptionUpgrade",
    "MealInstance",
    "PauseRecord",
    "DeliveryGroup",
    "CurryOrder",
    "CurryWallet",
]
