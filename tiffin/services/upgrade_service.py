"""
Upgrade overlay service.

Prices and records temporary diet or cuisine overrides on the active
subscription. An upgrade can be withdrawn only while it has not started.
"""

import math
from datetime import date
from decimal import Decimal
from typing import List, Optional

from tiffin.core.clock import inclusive_days
from tiffin.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from tiffin.models.base import MealItemType, UpgradeScope, UpgradeType
from tiffin.models.subscription import Subscription, SubscriptionUpgrade
from tiffin.repositories import SubscriptionUpgradeRepository, UpgradePriceRepository
from tiffin.services.base import BaseService, transient_read
from tiffin.services.subscription_service import SubscriptionService


def price_multiplier(scope: UpgradeScope, start_date: date, end_date: date) -> int:
    """Units charged: days for meal/day scope, started weeks for week scope."""
    days = inclusive_days(start_date, end_date)
    if scope == UpgradeScope.WEEK:
        return math.ceil(days / 7)
    return days


def quote_price(unit_price: Decimal, scope: UpgradeScope, start_date: date, end_date: date) -> Decimal:
    return Decimal(unit_price) * price_multiplier(scope, start_date, end_date)


class UpgradeService(BaseService):
    def __init__(self, db_session, clock=None, notifier=None):
        super().__init__(db_session, clock, notifier)
        self.upgrades = SubscriptionUpgradeRepository(db_session)
        self.prices = UpgradePriceRepository(db_session)
        self.subscription_service = SubscriptionService(db_session, self.clock, self.notifier)

    def apply(
        self,
        user_id: str,
        upgrade_type: UpgradeType,
        scope: UpgradeScope,
        meal_type: Optional[MealItemType],
        start_date: date,
        end_date: date,
    ) -> SubscriptionUpgrade:
        with self.transaction():
            subscription = self.subscription_service.resolve_active(user_id)
            if not subscription.package.allows_upgrade(upgrade_type):
                raise ConflictError(
                    f"Package does not allow the {upgrade_type.value} upgrade",
                    {"upgrade_type": upgrade_type.value},
                )
            self._validate_request(subscription, scope, meal_type, start_date, end_date)

            price_row = self.prices.find_price(upgrade_type, scope, meal_type)
            if price_row is None:
                raise NotFoundError(
                    "Upgrade price",
                    message=f"No price configured for {upgrade_type.value} per {scope.value}",
                )
            total = quote_price(price_row.unit_price, scope, start_date, end_date)

            upgrade = self.upgrades.create(
                SubscriptionUpgrade(
                    subscription_id=subscription.id,
                    upgrade_type=upgrade_type,
                    scope=scope,
                    meal_type=meal_type,
                    start_date=start_date,
                    end_date=end_date,
                    price=total,
                )
            )
            self._notify(
                user_id,
                "Upgrade applied",
                f"{upgrade_type.value.replace('_', ' ')} from {start_date.isoformat()} "
                f"to {end_date.isoformat()} for {total}.",
            )

        self._logger.info(f"Applied upgrade {upgrade.id}", extra={"user_id": user_id, "price": str(total)})
        return upgrade

    def remove(self, user_id: str, upgrade_id: str) -> None:
        with self.transaction():
            upgrade = self.upgrades.get_by_id(upgrade_id)
            if upgrade.subscription.user_id != user_id:
                raise ForbiddenError(resource_type="Subscription upgrade", resource_id=upgrade_id)
            if upgrade.start_date <= self.clock.today():
                raise ConflictError(
                    "An upgrade that has already started cannot be removed",
                    {"start_date": upgrade.start_date.isoformat()},
                )
            self.upgrades.delete(upgrade)
            self._notify(user_id, "Upgrade removed", "Your scheduled upgrade has been withdrawn.")

        self._logger.info(f"Removed upgrade {upgrade_id}", extra={"user_id": user_id})

    @transient_read
    def list_active(self, user_id: str) -> List[SubscriptionUpgrade]:
        subscription = self.subscription_service.subscriptions.find_active_for_user(user_id)
        if subscription is None:
            return []
        return self.upgrades.list_current(subscription.id, self.clock.today())

    def _validate_request(
        self,
        subscription: Subscription,
        scope: UpgradeScope,
        meal_type: Optional[MealItemType],
        start_date: date,
        end_date: date,
    ) -> None:
        errors = {}
        if scope == UpgradeScope.MEAL and meal_type is None:
            errors["meal_type"] = ["required when scope is meal"]
        elif scope != UpgradeScope.MEAL and meal_type is not None:
            errors["meal_type"] = ["only allowed when scope is meal"]
        elif meal_type is not None and not subscription.package.includes(meal_type):
            errors["meal_type"] = [f"package does not include {meal_type.value}"]

        if start_date > end_date:
            errors["end_date"] = ["must be on or after start_date"]
        if start_date < self.clock.today():
            errors.setdefault("start_date", []).append("cannot be in the past")
        if not (subscription.covers(start_date) and subscription.covers(end_date)):
            errors.setdefault("start_date", []).append(
                f"range must fall within {subscription.start_date.isoformat()} "
                f"and {subscription.end_date.isoformat()}"
            )

        if errors:
            raise ValidationError("Invalid upgrade request", errors)
