"""
Meal Models.

MealInstance rows are created lazily, the first time an operation needs
the meals of a date. The (subscription_id, service_date, item_type)
unique constraint is what keeps concurrent materialization idempotent.
"""

from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tiffin.models.base import (
    MealItemType,
    PauseAction,
    PauseMealType,
    TimestampModel,
    enum_column_type,
)

if TYPE_CHECKING:
    from tiffin.models.catalog import DeliverySlot
    from tiffin.models.delivery import DeliveryGroup
    from tiffin.models.subscription import Subscription

__all__ = [
    "MealInstance",
    "PauseRecord",
]


class MealInstance(TimestampModel):
    """One dated meal occurrence of a subscription."""

    __tablename__ = "meal_instances"
    __table_args__ = (
        UniqueConstraint(
            "subscription_id",
            "service_date",
            "item_type",
            name="uq_meal_instance_subscription_date_item",
        ),
        Index("ix_meal_instance_subscription_date", "subscription_id", "service_date"),
    )

    subscription_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("subscriptions.id", ondelete="CASCADE"),
        nullable=False,
    )
    service_date: Mapped[date] = mapped_column(Date, nullable=False)
    item_type: Mapped[MealItemType] = mapped_column(enum_column_type(MealItemType), nullable=False)
    delivery_slot_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("delivery_slots.id", ondelete="RESTRICT"),
        nullable=False,
    )
    delivery_group_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("delivery_groups.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    is_paused: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    subscription: Mapped["Subscription"] = relationship("Subscription")
    delivery_slot: Mapped["DeliverySlot"] = relationship("DeliverySlot", lazy="joined")
    delivery_group: Mapped[Optional["DeliveryGroup"]] = relationship(
        "DeliveryGroup", back_populates="meal_instances"
    )


class PauseRecord(TimestampModel):
    """
    Append-only audit entry for a pause or unpause action.

    Unpausing adds a new row; earlier pause rows are never removed.
    """

    __tablename__ = "pause_records"
    __table_args__ = (
        Index("ix_pause_record_subscription_date", "subscription_id", "meal_date"),
    )

    subscription_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("subscriptions.id", ondelete="CASCADE"),
        nullable=False,
    )
    meal_date: Mapped[date] = mapped_column(Date, nullable=False)
    meal_type: Mapped[PauseMealType] = mapped_column(enum_column_type(PauseMealType), nullable=False)
    action: Mapped[PauseAction] = mapped_column(enum_column_type(PauseAction), nullable=False)
    paused_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
