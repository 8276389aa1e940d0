"""
Subscription Repository Module.

Lookups and guarded status transitions for subscriptions and their
upgrade overlays.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import select, update

from tiffin.models.base import SubscriptionStatus
from tiffin.models.subscription import Subscription, SubscriptionUpgrade
from tiffin.repositories.base import BaseRepository


class SubscriptionRepository(BaseRepository[Subscription]):
    resource_name = "Subscription"

    def __init__(self, db_session):
        super().__init__(Subscription, db_session)

    def find_active_for_user(self, user_id: str, for_update: bool = False) -> Optional[Subscription]:
        stmt = select(Subscription).where(
            Subscription.user_id == user_id,
            Subscription.status == SubscriptionStatus.ACTIVE,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).unique().scalar_one_or_none()

    def list_for_user(self, user_id: str) -> List[Subscription]:
        return self.find_by_criteria(
            {"user_id": user_id},
            order_by=[Subscription.start_date.desc(), Subscription.created_at.desc()],
        )

    def transition_status(self, subscription: Subscription, new_status: SubscriptionStatus) -> bool:
        """
        Move an active subscription to `new_status`.

        Returns False when the row was no longer active (another request
        got there first).
        """
        self.db.flush()
        stmt = (
            update(Subscription)
            .where(
                Subscription.id == subscription.id,
                Subscription.status == SubscriptionStatus.ACTIVE,
            )
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        changed = self.db.execute(stmt).rowcount == 1
        self.db.refresh(subscription)
        return changed


class SubscriptionUpgradeRepository(BaseRepository[SubscriptionUpgrade]):
    resource_name = "Subscription upgrade"

    def __init__(self, db_session):
        super().__init__(SubscriptionUpgrade, db_session)

    def list_current(self, subscription_id: str, today: date) -> List[SubscriptionUpgrade]:
        """Upgrades that are running now or start in the future."""
        stmt = (
            select(SubscriptionUpgrade)
            .where(
                SubscriptionUpgrade.subscription_id == subscription_id,
                SubscriptionUpgrade.end_date >= today,
            )
            .order_by(SubscriptionUpgrade.start_date)
        )
        return list(self.db.execute(stmt).scalars().all())
