"""
Catalog Models.

Read-only reference data owned by the catalog team: meal packages,
delivery slots, customer addresses, curry token packages and upgrade
price rows. The subscription engine only looks these up and honours
their `is_active` flags.
"""

from datetime import time
from decimal import Decimal
from typing import List, Optional, Set

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, Numeric, String, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tiffin.core.exceptions import ConfigurationError
from tiffin.models.base import (
    ContainerType,
    DietType,
    CuisineType,
    MealItemType,
    SlotType,
    TimestampModel,
    UpgradeScope,
    UpgradeType,
    enum_column_type,
)

__all__ = [
    "MealPackage",
    "DeliverySlot",
    "Address",
    "TokenPackage",
    "UpgradePrice",
]


class MealPackage(TimestampModel):
    """
    Subscribable meal plan.

    Defines which meal items are delivered each day, for how many days,
    which containers may be chosen and which temporary upgrades are sold.
    """

    __tablename__ = "meal_packages"
    __table_args__ = (
        CheckConstraint("duration_days > 0", name="ck_meal_package_duration_positive"),
    )

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    diet_type: Mapped[DietType] = mapped_column(enum_column_type(DietType), nullable=False)
    cuisine_type: Mapped[CuisineType] = mapped_column(enum_column_type(CuisineType), nullable=False)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))

    # Included meal items
    includes_breakfast: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    includes_lunch: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    includes_dinner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    includes_snacks: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Containers
    allows_container_choice: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    default_container: Mapped[ContainerType] = mapped_column(
        enum_column_type(ContainerType), nullable=False, default=ContainerType.STEEL
    )
    allowed_containers: Mapped[str] = mapped_column(
        String(120),
        nullable=False,
        default="",
        comment="Comma separated container types offered when choice is allowed",
    )

    # Upgrade gates
    allows_veg_to_nonveg: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    allows_south_to_north: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    def included_item_types(self) -> List[MealItemType]:
        flags = {
            MealItemType.BREAKFAST: self.includes_breakfast,
            MealItemType.LUNCH: self.includes_lunch,
            MealItemType.DINNER: self.includes_dinner,
            MealItemType.SNACKS: self.includes_snacks,
        }
        return [item for item in MealItemType if flags[item]]

    def includes(self, item_type: MealItemType) -> bool:
        return item_type in self.included_item_types()

    def allowed_container_set(self) -> Set[ContainerType]:
        values = {v.strip() for v in (self.allowed_containers or "").split(",") if v.strip()}
        try:
            return {ContainerType(v) for v in values}
        except ValueError as exc:
            raise ConfigurationError(
                f"Package {self.id} lists an unknown container: {exc}",
                config_key="meal_package.allowed_containers",
            ) from exc

    def allows_upgrade(self, upgrade_type: UpgradeType) -> bool:
        if upgrade_type == UpgradeType.VEG_TO_NONVEG:
            return self.allows_veg_to_nonveg
        return self.allows_south_to_north


class DeliverySlot(TimestampModel):
    """Named delivery window. Several slots may share a slot type."""

    __tablename__ = "delivery_slots"

    name: Mapped[str] = mapped_column(String(80), nullable=False)
    slot_type: Mapped[SlotType] = mapped_column(enum_column_type(SlotType), nullable=False, index=True)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)


class Address(TimestampModel):
    """Delivery address owned by a single user."""

    __tablename__ = "addresses"

    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(50), nullable=False, default="home")
    line1: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    pincode: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class TokenPackage(TimestampModel):
    """Prepaid bundle of curry tokens for one diet type."""

    __tablename__ = "token_packages"
    __table_args__ = (
        CheckConstraint("token_count > 0", name="ck_token_package_count_positive"),
        CheckConstraint("validity_days > 0", name="ck_token_package_validity_positive"),
    )

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    diet_type: Mapped[DietType] = mapped_column(enum_column_type(DietType), nullable=False)
    token_count: Mapped[int] = mapped_column(Integer, nullable=False)
    validity_days: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class UpgradePrice(TimestampModel):
    """
    Unit price of an upgrade for a scope.

    meal_type is set only for scope=meal rows.
    """

    __tablename__ = "upgrade_prices"
    __table_args__ = (
        UniqueConstraint("upgrade_type", "scope", "meal_type", name="uq_upgrade_price_key"),
        Index("ix_upgrade_price_lookup", "upgrade_type", "scope"),
    )

    upgrade_type: Mapped[UpgradeType] = mapped_column(enum_column_type(UpgradeType), nullable=False)
    scope: Mapped[UpgradeScope] = mapped_column(enum_column_type(UpgradeScope), nullable=False)
    meal_type: Mapped[Optional[MealItemType]] = mapped_column(enum_column_type(MealItemType), nullable=True)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
