"""
Curry Wallet and Order Models.

A wallet is a prepaid token balance per (user, diet type). Every
ordered curry consumes exactly one token; cancelling returns it. The
check constraint keeps used_tokens within [0, total_tokens] no matter
which code path writes the row.
"""

from datetime import date
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tiffin.models.base import (
    CuisineType,
    CurryOrderStatus,
    DietType,
    TimestampModel,
    enum_column_type,
)

if TYPE_CHECKING:
    from tiffin.models.catalog import DeliverySlot
    from tiffin.models.delivery import DeliveryGroup

__all__ = [
    "CurryWallet",
    "CurryOrder",
]

ORDERED_ONLY = text("status = 'ordered'")


class CurryWallet(TimestampModel):
    __tablename__ = "curry_wallets"
    __table_args__ = (
        UniqueConstraint("user_id", "diet_type", name="uq_curry_wallet_user_diet"),
        CheckConstraint(
            "used_tokens >= 0 AND used_tokens <= total_tokens",
            name="ck_curry_wallet_used_within_total",
        ),
    )

    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    diet_type: Mapped[DietType] = mapped_column(enum_column_type(DietType), nullable=False)
    total_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    used_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    valid_until: Mapped[date] = mapped_column(Date, nullable=False)

    @property
    def remaining_tokens(self) -> int:
        return self.total_tokens - self.used_tokens

    def expired_on(self, today: date) -> bool:
        return self.valid_until < today


class CurryOrder(TimestampModel):
    """
    Dated curry order paid with one wallet token.

    Only one order per user and date may be in the 'ordered' state.
    """

    __tablename__ = "curry_orders"
    __table_args__ = (
        Index(
            "uq_curry_order_user_date_ordered",
            "user_id",
            "order_date",
            unique=True,
            postgresql_where=ORDERED_ONLY,
            sqlite_where=ORDERED_ONLY,
        ),
        Index("ix_curry_order_user_status", "user_id", "status"),
    )

    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    wallet_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("curry_wallets.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    cuisine_type: Mapped[CuisineType] = mapped_column(enum_column_type(CuisineType), nullable=False)
    order_date: Mapped[date] = mapped_column(Date, nullable=False)
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
    status: Mapped[CurryOrderStatus] = mapped_column(
        enum_column_type(CurryOrderStatus),
        nullable=False,
        default=CurryOrderStatus.ORDERED,
    )

    wallet: Mapped["CurryWallet"] = relationship("CurryWallet")
    delivery_slot: Mapped["DeliverySlot"] = relationship("DeliverySlot", lazy="joined")
    delivery_group: Mapped[Optional["DeliveryGroup"]] = relationship(
        "DeliveryGroup", back_populates="curry_orders"
    )
