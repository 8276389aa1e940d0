"""
Catalog Repository Module.

Read-only lookups for packages, delivery slots, addresses, token
packages and upgrade prices. Inactive rows are treated as missing.
"""

from typing import Optional

from sqlalchemy import select

from tiffin.core.exceptions import NotFoundError
from tiffin.models.base import MealItemType, SlotType, UpgradeScope, UpgradeType
from tiffin.models.catalog import Address, DeliverySlot, MealPackage, TokenPackage, UpgradePrice
from tiffin.repositories.base import BaseRepository


class MealPackageRepository(BaseRepository[MealPackage]):
    resource_name = "Meal package"

    def __init__(self, db_session):
        super().__init__(MealPackage, db_session)

    def get_active(self, package_id: str) -> MealPackage:
        package = self.find_by_id(package_id)
        if package is None or not package.is_active:
            raise NotFoundError(self.resource_name, package_id)
        return package


class DeliverySlotRepository(BaseRepository[DeliverySlot]):
    resource_name = "Delivery slot"

    def __init__(self, db_session):
        super().__init__(DeliverySlot, db_session)

    def get_active(self, slot_id: str) -> DeliverySlot:
        slot = self.find_by_id(slot_id)
        if slot is None or not slot.is_active:
            raise NotFoundError(self.resource_name, slot_id)
        return slot

    def find_active_by_type(self, slot_type: SlotType) -> Optional[DeliverySlot]:
        """First active slot of a type, by sort order then start time."""
        stmt = (
            select(DeliverySlot)
            .where(DeliverySlot.slot_type == slot_type, DeliverySlot.is_active.is_(True))
            .order_by(DeliverySlot.sort_order, DeliverySlot.start_time)
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()


class AddressRepository(BaseRepository[Address]):
    resource_name = "Address"

    def __init__(self, db_session):
        super().__init__(Address, db_session)

    def get_owned(self, address_id: str, user_id: str) -> Address:
        """Addresses of other users are reported as missing, not forbidden."""
        address = self.find_by_id(address_id)
        if address is None or not address.is_active or address.user_id != user_id:
            raise NotFoundError(self.resource_name, address_id)
        return address


class TokenPackageRepository(BaseRepository[TokenPackage]):
    resource_name = "Token package"

    def __init__(self, db_session):
        super().__init__(TokenPackage, db_session)

    def get_active(self, package_id: str) -> TokenPackage:
        package = self.find_by_id(package_id)
        if package is None or not package.is_active:
            raise NotFoundError(self.resource_name, package_id)
        return package


class UpgradePriceRepository(BaseRepository[UpgradePrice]):
    resource_name = "Upgrade price"

    def __init__(self, db_session):
        super().__init__(UpgradePrice, db_session)

    def find_price(
        self,
        upgrade_type: UpgradeType,
        scope: UpgradeScope,
        meal_type: Optional[MealItemType] = None,
    ) -> Optional[UpgradePrice]:
        stmt = select(UpgradePrice).where(
            UpgradePrice.upgrade_type == upgrade_type,
            UpgradePrice.scope == scope,
            UpgradePrice.is_active.is_(True),
        )
        if meal_type is None:
            stmt = stmt.where(UpgradePrice.meal_type.is_(None))
        else:
            stmt = stmt.where(UpgradePrice.meal_type == meal_type)
        return self.db.execute(stmt.limit(1)).scalar_one_or_none()
