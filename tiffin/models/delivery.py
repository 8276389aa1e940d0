"""
Delivery Group Model.

A delivery group consolidates several meal instances and curry orders of
one user into a single delivery on one date. Members only hold a
back-reference; deleting a group never deletes its members.
"""

from datetime import date
from typing import TYPE_CHECKING, List

from sqlalchemy import Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tiffin.models.base import TimestampModel

if TYPE_CHECKING:
    from tiffin.models.catalog import DeliverySlot
    from tiffin.models.curry import CurryOrder
    from tiffin.models.meal import MealInstance

__all__ = ["DeliveryGroup"]


class DeliveryGroup(TimestampModel):
    __tablename__ = "delivery_groups"
    __table_args__ = (
        Index("ix_delivery_group_user_date", "user_id", "service_date"),
    )

    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    service_date: Mapped[date] = mapped_column(Date, nullable=False)
    delivery_slot_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("delivery_slots.id", ondelete="RESTRICT"),
        nullable=False,
    )

    delivery_slot: Mapped["DeliverySlot"] = relationship("DeliverySlot", lazy="joined")
    meal_instances: Mapped[List["MealInstance"]] = relationship(
        "MealInstance",
        back_populates="delivery_group",
        passive_deletes=True,
    )
    curry_orders: Mapped[List["CurryOrder"]] = relationship(
        "CurryOrder",
        back_populates="delivery_group",
        passive_deletes=True,
    )

    @property
    def member_count(self) -> int:
        return len(self.meal_instances) + len(self.curry_orders)
