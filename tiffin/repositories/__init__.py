"""
Repositories Package

Data access objects, one per aggregate. Repositories flush but never
commit; the calling service owns the transaction.
"""

from tiffin.repositories.base import BaseRepository
from tiffin.repositories.catalog_repository import (
    AddressRepository,
    DeliverySlotRepository,
    MealPackageRepository,
    TokenPackageRepository,
    UpgradePriceRepository,
)
from tiffin.repositories.subscription_repository import SubscriptionRepository, SubscriptionUpgradeRepository
from tiffin.repositories.meal_repository import MealInstanceRepository, PauseRecordRepository
from tiffin.repositories.delivery_repository import DeliveryGroupRepository
from tiffin.repositories.curry_repository import CurryOrderRepository, CurryWalletRepository

__all__ = [
    "BaseRepository",
    "AddressRepository",
    "DeliverySlotRepository",
    "MealPackageRepository",
    "TokenPackageRepository",
    "UpgradePriceRepository",
    "SubscriptionRepository",
    "SubscriptionUpgradeRepository",
    "MealInstanceRepository",
    "PauseRecordRepository",
    "DeliveryGroupRepository",
    "CurryOrderRepository",
    "CurryWalletRepository",
]
