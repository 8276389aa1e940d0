"""
Services Package

Business logic for the subscription and scheduling engine. Each public
service method is one transaction.
"""

from tiffin.services.base import BaseService
from tiffin.services.subscription_service import SubscriptionService
from tiffin.services.meal_service import MealService
from tiffin.services.delivery_service import DeliveryService
from tiffin.services.wallet_service import WalletService
from tiffin.services.curry_order_service import CurryOrderService
from tiffin.services.upgrade_service import UpgradeService

__all__ = [
    "BaseService",
    "SubscriptionService",
    "MealService",
    "DeliveryService",
    "WalletService",
    "CurryOrderService",
    "UpgradeService",
]
