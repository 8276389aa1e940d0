"""
Curry Repository Module.

Token debit and credit are single conditional UPDATE statements so two
concurrent orders can never both consume the last token, and a refund
can never push used_tokens below zero.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import select, update

from tiffin.models.base import CurryOrderStatus, DietType
from tiffin.models.curry import CurryOrder, CurryWallet
from tiffin.repositories.base import BaseRepository


class CurryWalletRepository(BaseRepository[CurryWallet]):
    resource_name = "Curry wallet"

    def __init__(self, db_session):
        super().__init__(CurryWallet, db_session)

    def find_for_user_diet(self, user_id: str, diet_type: DietType, for_update: bool = False) -> Optional[CurryWallet]:
        stmt = select(CurryWallet).where(
            CurryWallet.user_id == user_id,
            CurryWallet.diet_type == diet_type,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def list_for_user(self, user_id: str) -> List[CurryWallet]:
        return self.find_by_criteria({"user_id": user_id}, order_by=[CurryWallet.diet_type])

    def debit(self, wallet: CurryWallet) -> bool:
        """Consume one token. False when the wallet had none left."""
        self.db.flush()
        stmt = (
            update(CurryWallet)
            .where(
                CurryWallet.id == wallet.id,
                CurryWallet.used_tokens < CurryWallet.total_tokens,
            )
            .values(used_tokens=CurryWallet.used_tokens + 1)
            .execution_options(synchronize_session=False)
        )
        changed = self.db.execute(stmt).rowcount == 1
        self.db.refresh(wallet)
        return changed

    def credit(self, wallet_id: str) -> bool:
        """Return one token. False when nothing had been used."""
        self.db.flush()
        stmt = (
            update(CurryWallet)
            .where(
                CurryWallet.id == wallet_id,
                CurryWallet.used_tokens > 0,
            )
            .values(used_tokens=CurryWallet.used_tokens - 1)
            .execution_options(synchronize_session=False)
        )
        changed = self.db.execute(stmt).rowcount == 1
        self.db.expire_all()
        return changed


class CurryOrderRepository(BaseRepository[CurryOrder]):
    resource_name = "Curry order"

    def __init__(self, db_session):
        super().__init__(CurryOrder, db_session)

    def find_ordered_for_date(self, user_id: str, order_date: date) -> Optional[CurryOrder]:
        return self.find_one_by_criteria(
            {"user_id": user_id, "order_date": order_date, "status": CurryOrderStatus.ORDERED}
        )

    def list_for_user(self, user_id: str, status: Optional[CurryOrderStatus] = None) -> List[CurryOrder]:
        criteria = {"user_id": user_id}
        if status is not None:
            criteria["status"] = status
        return self.find_by_criteria(
            criteria,
            order_by=[CurryOrder.order_date.desc(), CurryOrder.created_at.desc()],
        )

    def mark_cancelled(self, order_id: str) -> bool:
        """Ordered -> cancelled. False when the order was no longer 'ordered'."""
        self.db.flush()
        stmt = (
            update(CurryOrder)
            .where(
                CurryOrder.id == order_id,
                CurryOrder.status == CurryOrderStatus.ORDERED,
            )
            .values(status=CurryOrderStatus.CANCELLED, delivery_group_id=None)
            .execution_options(synchronize_session=False)
        )
        changed = self.db.execute(stmt).rowcount == 1
        self.db.expire_all()
        return changed
