"""
Subscription Models.

A subscription binds a user to one meal package for a fixed period.
At most one subscription per user may be active at any instant; the
partial unique index below is the authoritative guard for that rule.
"""

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tiffin.models.base import (
    ContainerType,
    MealItemType,
    SubscriptionStatus,
    TimestampModel,
    UpgradeScope,
    UpgradeType,
    enum_column_type,
)

if TYPE_CHECKING:
    from tiffin.models.catalog import Address, MealPackage

__all__ = [
    "Subscription",
    "SubscriptionUpgrade",
]

ACTIVE_ONLY = text("status = 'active'")


class Subscription(TimestampModel):
    """
    Meal plan subscription.

    end_date is derived once at creation (start_date + duration - 1) and
    never changes afterwards. Rows are never deleted; they only move from
    active to completed or cancelled.
    """

    __tablename__ = "subscriptions"
    __table_args__ = (
        Index(
            "uq_subscription_user_active",
            "user_id",
            unique=True,
            postgresql_where=ACTIVE_ONLY,
            sqlite_where=ACTIVE_ONLY,
        ),
        CheckConstraint(
            "end_date >= start_date",
            name="ck_subscription_end_after_start",
        ),
        Index(
            "ix_subscription_user_status",
            "user_id",
            "status",
        ),
    )

    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    package_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("meal_packages.id", ondelete="RESTRICT"),
        nullable=False,
    )
    address_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("addresses.id", ondelete="RESTRICT"),
        nullable=False,
    )
    container_type: Mapped[ContainerType] = mapped_column(enum_column_type(ContainerType), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[SubscriptionStatus] = mapped_column(
        enum_column_type(SubscriptionStatus),
        nullable=False,
        default=SubscriptionStatus.ACTIVE,
    )

    package: Mapped["MealPackage"] = relationship("MealPackage", lazy="joined")
    address: Mapped["Address"] = relationship("Address")
    upgrades: Mapped[List["SubscriptionUpgrade"]] = relationship(
        back_populates="subscription",
        order_by="SubscriptionUpgrade.start_date",
    )

    def remaining_days_on(self, today: date) -> int:
        return max((self.end_date - today).days, 0)

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class SubscriptionUpgrade(TimestampModel):
    """
    Temporary priced diet or cuisine override on top of a subscription.

    meal_type is present exactly when scope is 'meal'.
    """

    __tablename__ = "subscription_upgrades"
    __table_args__ = (
        CheckConstraint(
            "end_date >= start_date",
            name="ck_upgrade_end_after_start",
        ),
        CheckConstraint(
            "(scope = 'meal' AND meal_type IS NOT NULL) OR (scope <> 'meal' AND meal_type IS NULL)",
            name="ck_upgrade_meal_type_scope",
        ),
        CheckConstraint("price >= 0", name="ck_upgrade_price_non_negative"),
    )

    subscription_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("subscriptions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    upgrade_type: Mapped[UpgradeType] = mapped_column(enum_column_type(UpgradeType), nullable=False)
    scope: Mapped[UpgradeScope] = mapped_column(enum_column_type(UpgradeScope), nullable=False)
    meal_type: Mapped[Optional[MealItemType]] = mapped_column(enum_column_type(MealItemType), nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    subscription: Mapped["Subscription"] = relationship(back_populates="upgrades")
