"""
Meal materialization and pause workflow.

Meal instances exist only for the dates somebody has asked about, and
only ever for today and tomorrow in service-local time. Materialization
is an insert-if-absent on (subscription_id, service_date, item_type), so
two requests racing on the same date both succeed with one set of rows.
"""

from datetime import date
from typing import Dict, Iterable, List, Optional

from tiffin.core.clock import is_before_cutoff, service_window
from tiffin.core.exceptions import (
    AlreadyPausedError,
    ConfigurationError,
    ConflictError,
    DeadlineExceededError,
    ForbiddenError,
    NotFoundError,
    NotPausedError,
    ValidationError,
)
from tiffin.models.base import DEFAULT_SLOT_FOR_ITEM, MealItemType, PauseAction, PauseMealType, new_id
from tiffin.models.catalog import DeliverySlot
from tiffin.models.meal import MealInstance, PauseRecord
from tiffin.models.subscription import Subscription
from tiffin.repositories import (
    DeliverySlotRepository,
    MealInstanceRepository,
    PauseRecordRepository,
)
from tiffin.services.base import BaseService, transient_read
from tiffin.services.subscription_service import SubscriptionService


class MealService(BaseService):
    def __init__(self, db_session, clock=None, notifier=None):
        super().__init__(db_session, clock, notifier)
        self.meals = MealInstanceRepository(db_session)
        self.pauses = PauseRecordRepository(db_session)
        self.slots = DeliverySlotRepository(db_session)
        self.subscription_service = SubscriptionService(db_session, self.clock, self.notifier)

    # -------------------------------------------------------------------------
    # Materialization
    # -------------------------------------------------------------------------

    def ensure_materialized(self, subscription: Subscription, dates: Iterable[date]) -> List[MealInstance]:
        """
        Create any missing meal instances for `dates` and return all of them.

        Runs inside the caller's transaction. Dates outside the
        subscription period are skipped; dates outside {today, tomorrow}
        are refused.

        Raises:
            ValidationError: a date outside the service window
            ConfigurationError: no active delivery slot for an included item
        """
        requested = set(dates)
        window = set(service_window(self.clock))
        outside = requested - window
        if outside:
            raise ValidationError(
                "Meals can only be scheduled for today and tomorrow",
                {"dates": [d.isoformat() for d in sorted(outside)]},
            )

        covered = sorted(d for d in requested if subscription.covers(d))
        if not covered:
            return []

        existing = {
            (meal.service_date, meal.item_type)
            for meal in self.meals.list_for_dates(subscription.id, covered)
        }
        slots: Dict[MealItemType, DeliverySlot] = {}
        rows = []
        for day in covered:
            for item in subscription.package.included_item_types():
                if (day, item) in existing:
                    continue
                if item not in slots:
                    slots[item] = self._default_slot(item)
                rows.append(
                    {
                        "id": new_id(),
                        "subscription_id": subscription.id,
                        "service_date": day,
                        "item_type": item,
                        "delivery_slot_id": slots[item].id,
                        "is_paused": False,
                    }
                )

        if rows:
            inserted = self.meals.insert_ignore(rows)
            self._logger.debug(
                f"Materialized {inserted} meal instance(s) for subscription {subscription.id}",
                extra={"dates": [d.isoformat() for d in covered]},
            )
        return self.meals.list_for_dates(subscription.id, covered)

    def _default_slot(self, item: MealItemType) -> DeliverySlot:
        slot_type = DEFAULT_SLOT_FOR_ITEM[item]
        slot = self.slots.find_active_by_type(slot_type)
        if slot is None:
            raise ConfigurationError(
                f"No active delivery slot configured for {slot_type.value}",
                config_key=f"delivery_slot.{slot_type.value}",
            )
        return slot

    # -------------------------------------------------------------------------
    # Schedule
    # -------------------------------------------------------------------------

    def get_schedule(self, user_id: str) -> List[MealInstance]:
        """Today's and tomorrow's meals, materialized on first access."""
        with self.transaction():
            subscription = self.subscription_service.resolve_active(user_id)
            meals = self.ensure_materialized(subscription, service_window(self.clock))
        return meals

    @transient_read
    def list_pause_records(self, user_id: str, meal_date: Optional[date] = None) -> List[PauseRecord]:
        subscription = self.subscription_service.subscriptions.find_active_for_user(user_id)
        if subscription is None:
            return []
        return self.pauses.list_for_subscription(subscription.id, meal_date)

    # -------------------------------------------------------------------------
    # Pause / unpause
    # -------------------------------------------------------------------------

    def pause(self, user_id: str, meal_date: date, meal_type: PauseMealType) -> List[MealInstance]:
        return self._toggle(user_id, meal_date, meal_type, PauseAction.PAUSE)

    def unpause(self, user_id: str, meal_date: date, meal_type: PauseMealType) -> List[MealInstance]:
        return self._toggle(user_id, meal_date, meal_type, PauseAction.UNPAUSE)

    def _toggle(
        self,
        user_id: str,
        meal_date: date,
        meal_type: PauseMealType,
        action: PauseAction,
    ) -> List[MealInstance]:
        today, tomorrow = service_window(self.clock)
        if meal_date not in (today, tomorrow):
            raise ValidationError(
                "Meals can only be paused or resumed for today or tomorrow",
                {"date": [f"must be {today.isoformat()} or {tomorrow.isoformat()}"]},
            )
        if meal_date == today and not is_before_cutoff(self.clock):
            raise DeadlineExceededError(self.clock.cutoff_hour)

        pausing = action == PauseAction.PAUSE
        with self.transaction():
            subscription = self.subscription_service.resolve_active(user_id)
            subscription_id = subscription.id
            targets = self._target_items(subscription, meal_type)

            instance_ids = [
                meal.id
                for meal in self.ensure_materialized(subscription, [meal_date])
                if meal.item_type in targets
            ]
            if not instance_ids:
                raise NotFoundError(
                    "Meal",
                    message=f"No meals scheduled on {meal_date.isoformat()}",
                )

            if self.meals.set_paused(instance_ids, pausing) == 0:
                error = AlreadyPausedError if pausing else NotPausedError
                raise error(meal_date, meal_type.value)

            self.pauses.create(
                PauseRecord(
                    subscription_id=subscription_id,
                    meal_date=meal_date,
                    meal_type=meal_type,
                    action=action,
                    paused_at=self.clock.now(),
                )
            )
            verb = "paused" if pausing else "resumed"
            self._notify(
                user_id,
                f"Meal {verb}",
                f"Your {meal_type.value} meal on {meal_date.isoformat()} has been {verb}.",
            )
            meals = self.meals.list_for_dates(subscription_id, [meal_date])

        self._logger.info(
            f"Meal {action.value} applied for subscription {subscription_id}",
            extra={"meal_date": meal_date.isoformat(), "meal_type": meal_type.value},
        )
        return meals

    @staticmethod
    def _target_items(subscription: Subscription, meal_type: PauseMealType) -> List[MealItemType]:
        included = subscription.package.included_item_types()
        if meal_type == PauseMealType.ALL:
            if not included:
                raise NotFoundError("Meal", message="Package includes no meals")
            return included

        item = MealItemType(meal_type.value)
        if item not in included:
            raise NotFoundError("Meal", message=f"Package does not include {item.value}")
        return [item]

    # -------------------------------------------------------------------------
    # Slot reassignment
    # -------------------------------------------------------------------------

    def reassign_slot(self, user_id: str, instance_id: str, slot_id: str) -> MealInstance:
        with self.transaction():
            found = self.meals.find_with_owner([instance_id])
            if not found:
                raise NotFoundError("Meal", instance_id)
            meal = found[0]
            if meal.subscription.user_id != user_id:
                raise ForbiddenError(resource_type="Meal", resource_id=instance_id)
            if meal.service_date < self.clock.today():
                raise ValidationError("Cannot change the delivery slot of a past meal")
            if meal.delivery_group_id is not None:
                raise ConflictError(
                    "Meal is part of a delivery group; ungroup it first",
                    {"delivery_group_id": meal.delivery_group_id},
                )

            meal.delivery_slot = self.slots.get_active(slot_id)
            self.db.flush()

        self._logger.info(f"Reassigned meal {instance_id} to slot {slot_id}", extra={"user_id": user_id})
        return meal
