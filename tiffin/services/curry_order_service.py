"""
Curry order workflow.

Placing an order debits one wallet token and cancelling credits it back,
always in the same transaction as the order row change. Pairing an order
with the day's lunch delivery is best effort and runs in a savepoint so
a failed pairing never undoes the order itself.
"""

from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from tiffin.config.settings import settings
from tiffin.core.clock import service_window
from tiffin.core.exceptions import (
    BaseAppException,
    ConfigurationError,
    ConflictError,
    ExpiredError,
    ForbiddenError,
    InsufficientTokensError,
    NotFoundError,
    OperationError,
    ValidationError,
)
from tiffin.models.base import CuisineType, CurryOrderStatus, DietType, MealItemType, SlotType
from tiffin.models.catalog import DeliverySlot
from tiffin.models.curry import CurryOrder
from tiffin.models.meal import MealInstance
from tiffin.repositories import (
    CurryOrderRepository,
    CurryWalletRepository,
    DeliverySlotRepository,
    MealInstanceRepository,
    SubscriptionRepository,
)
from tiffin.services.base import BaseService, transient_read
from tiffin.services.delivery_service import DeliveryService
from tiffin.services.meal_service import MealService


def duplicate_order_error(order_date: date) -> ConflictError:
    return ConflictError(
        f"A curry order already exists for {order_date.isoformat()}",
        {"order_date": order_date.isoformat()},
    )


class CurryOrderService(BaseService):
    def __init__(self, db_session, clock=None, notifier=None):
        super().__init__(db_session, clock, notifier)
        self.orders = CurryOrderRepository(db_session)
        self.wallets = CurryWalletRepository(db_session)
        self.slots = DeliverySlotRepository(db_session)
        self.subscriptions = SubscriptionRepository(db_session)
        self.meals = MealInstanceRepository(db_session)
        self.meal_service = MealService(db_session, self.clock, self.notifier)
        self.delivery_service = DeliveryService(db_session, self.clock, self.notifier)

    def place_order(
        self,
        user_id: str,
        diet_type: DietType,
        cuisine_type: CuisineType,
        order_date: date,
        delivery_slot_id: Optional[str] = None,
        group_with_meal: bool = False,
    ) -> CurryOrder:
        """
        Spend one token on a curry for `order_date`.

        A second order for a date that already has an open one is a
        conflict even when the wallet is empty, so the duplicate check
        runs before the balance check.
        """
        today = self.clock.today()
        last_day = today + timedelta(days=settings.ORDER_ADVANCE_DAYS)
        if not today <= order_date <= last_day:
            raise ValidationError(
                "Order date is outside the ordering window",
                {"order_date": [f"must be between {today.isoformat()} and {last_day.isoformat()}"]},
            )

        with self.transaction(conflict=duplicate_order_error(order_date)):
            wallet = self.wallets.find_for_user_diet(user_id, diet_type, for_update=True)
            if wallet is None:
                raise NotFoundError("Curry wallet", message=f"No {diet_type.value} curry wallet found")
            if wallet.expired_on(today):
                raise ExpiredError(valid_until=wallet.valid_until)
            if self.orders.find_ordered_for_date(user_id, order_date) is not None:
                raise duplicate_order_error(order_date)
            if wallet.remaining_tokens < 1:
                raise InsufficientTokensError(wallet.remaining_tokens)

            slot = self.slots.get_active(delivery_slot_id) if delivery_slot_id else self._default_lunch_slot()

            if not self.wallets.debit(wallet):
                raise InsufficientTokensError(wallet.remaining_tokens)
            order = self.orders.create(
                CurryOrder(
                    user_id=user_id,
                    wallet_id=wallet.id,
                    cuisine_type=cuisine_type,
                    order_date=order_date,
                    delivery_slot_id=slot.id,
                    status=CurryOrderStatus.ORDERED,
                )
            )
            if group_with_meal:
                self._pair_with_lunch(order)

            self._notify(
                user_id,
                "Curry ordered",
                f"Your {cuisine_type.value.replace('_', ' ')} curry is booked for {order_date.isoformat()}.",
            )

        self._logger.info(
            f"Placed curry order {order.id}",
            extra={"user_id": user_id, "order_date": order_date.isoformat()},
        )
        return order

    def cancel_order(self, user_id: str, order_id: str) -> CurryOrder:
        with self.transaction():
            order = self.orders.get_by_id(order_id)
            if order.user_id != user_id:
                raise ForbiddenError(resource_type="Curry order", resource_id=order_id)
            if order.status != CurryOrderStatus.ORDERED:
                raise ConflictError(
                    f"Cannot cancel an order that is {order.status.value}",
                    {"status": order.status.value},
                )
            if order.order_date < self.clock.today():
                raise ConflictError("Cannot cancel an order for a past date")

            group_id = order.delivery_group_id
            wallet_id = order.wallet_id
            if not self.orders.mark_cancelled(order_id):
                raise ConflictError("Order was changed by another request")
            if not self.wallets.credit(wallet_id):
                raise OperationError("Token refund failed", {"wallet_id": wallet_id})
            if group_id is not None:
                self.delivery_service.prune_group(group_id)

            self._notify(user_id, "Curry order cancelled", "Your token has been returned to your wallet.")

        self._logger.info(f"Cancelled curry order {order_id}", extra={"user_id": user_id})
        return order

    @transient_read
    def list_orders(self, user_id: str, status: Optional[CurryOrderStatus] = None) -> List[CurryOrder]:
        return self.orders.list_for_user(user_id, status)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _default_lunch_slot(self) -> DeliverySlot:
        slot = self.slots.find_active_by_type(SlotType.AFTERNOON)
        if slot is None:
            raise ConfigurationError(
                "No active afternoon delivery slot configured",
                config_key=f"delivery_slot.{SlotType.AFTERNOON.value}",
            )
        return slot

    def _pair_with_lunch(self, order: CurryOrder) -> None:
        try:
            with self.db.begin_nested():
                meal = self._find_lunch(order.user_id, order.order_date)
                if meal is None:
                    self._logger.debug(f"No lunch to pair with curry order {order.id}")
                    return
                if meal.delivery_group is not None:
                    self.delivery_service.join_group(meal.delivery_group, order)
                else:
                    self.delivery_service.build_group(
                        order.user_id,
                        order.order_date,
                        [meal.id],
                        [order.id],
                        meal.delivery_slot_id,
                    )
        except (BaseAppException, SQLAlchemyError) as exc:
            self._logger.info(f"Curry order {order.id} left ungrouped: {exc}")

    def _find_lunch(self, user_id: str, order_date: date) -> Optional[MealInstance]:
        subscription = self.subscriptions.find_active_for_user(user_id)
        if subscription is None or not subscription.covers(order_date):
            return None
        if not subscription.package.includes(MealItemType.LUNCH):
            return None

        if order_date in service_window(self.clock):
            self.meal_service.ensure_materialized(subscription, [order_date])
        meal = self.meals.find_for_item(subscription.id, order_date, MealItemType.LUNCH)
        if meal is None or meal.is_paused:
            return None
        return meal
