"""
Delivery grouping service.

A group bundles two or more meal instances and curry orders of one user
on one date into a single drop on a chosen slot. Groups are only a
back-reference: dissolving one clears members' group id and leaves
their last assigned slot in place.
"""

from datetime import date
from typing import List, Optional, Sequence

from tiffin.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from tiffin.models.base import CurryOrderStatus
from tiffin.models.curry import CurryOrder
from tiffin.models.delivery import DeliveryGroup
from tiffin.models.meal import MealInstance
from tiffin.repositories import (
    CurryOrderRepository,
    DeliveryGroupRepository,
    DeliverySlotRepository,
    MealInstanceRepository,
)
from tiffin.services.base import BaseService, transient_read

MIN_GROUP_SIZE = 2


class DeliveryService(BaseService):
    def __init__(self, db_session, clock=None, notifier=None):
        super().__init__(db_session, clock, notifier)
        self.groups = DeliveryGroupRepository(db_session)
        self.meals = MealInstanceRepository(db_session)
        self.orders = CurryOrderRepository(db_session)
        self.slots = DeliverySlotRepository(db_session)

    def group(
        self,
        user_id: str,
        service_date: date,
        meal_instance_ids: Sequence[str],
        curry_order_ids: Sequence[str],
        delivery_slot_id: str,
    ) -> DeliveryGroup:
        """
        Bundle meals and curry orders into one delivery.

        Raises:
            ValidationError: fewer than two members
            ForbiddenError: a member belongs to another user
            ConflictError: members span dates, a meal is paused, an order
                is not open, or a member is already grouped
        """
        meal_ids = list(dict.fromkeys(meal_instance_ids))
        order_ids = list(dict.fromkeys(curry_order_ids))
        if len(meal_ids) + len(order_ids) < MIN_GROUP_SIZE:
            raise ValidationError(
                f"A delivery group needs at least {MIN_GROUP_SIZE} items",
                {"items": [f"got {len(meal_ids) + len(order_ids)}"]},
            )

        with self.transaction():
            group = self.build_group(user_id, service_date, meal_ids, order_ids, delivery_slot_id)
            group_id = group.id
            self._notify(
                user_id,
                "Deliveries combined",
                f"{group.member_count} items on {service_date.isoformat()} will arrive together.",
            )

        self._logger.info(f"Created delivery group {group_id}", extra={"user_id": user_id})
        return group

    def ungroup(self, user_id: str, group_id: str) -> None:
        with self.transaction():
            group = self._get_owned(user_id, group_id)
            self._dissolve(group)
            self._notify(user_id, "Deliveries separated", "Your grouped items will be delivered separately.")

        self._logger.info(f"Dissolved delivery group {group_id}", extra={"user_id": user_id})

    @transient_read
    def list_groups(self, user_id: str, service_date: Optional[date] = None) -> List[DeliveryGroup]:
        return self.groups.list_for_user(user_id, service_date)

    # -------------------------------------------------------------------------
    # Helpers shared with the curry order workflow (caller owns the transaction)
    # -------------------------------------------------------------------------

    def build_group(
        self,
        user_id: str,
        service_date: date,
        meal_ids: List[str],
        order_ids: List[str],
        delivery_slot_id: str,
    ) -> DeliveryGroup:
        meals = self.meals.find_with_owner(meal_ids) if meal_ids else []
        if len(meals) != len(meal_ids):
            missing = set(meal_ids) - {m.id for m in meals}
            raise NotFoundError("Meal", ", ".join(sorted(missing)))

        orders = self.orders.find_by_ids(order_ids) if order_ids else []
        if len(orders) != len(order_ids):
            missing = set(order_ids) - {o.id for o in orders}
            raise NotFoundError("Curry order", ", ".join(sorted(missing)))

        for meal in meals:
            if meal.subscription.user_id != user_id:
                raise ForbiddenError(resource_type="Meal", resource_id=meal.id)
        for order in orders:
            if order.user_id != user_id:
                raise ForbiddenError(resource_type="Curry order", resource_id=order.id)

        dates = {m.service_date for m in meals} | {o.order_date for o in orders}
        if dates != {service_date}:
            raise ConflictError(
                "All grouped items must be delivered on the same date",
                {"dates": sorted(d.isoformat() for d in dates)},
            )
        self._check_groupable(meals, orders)

        slot = self.slots.get_active(delivery_slot_id)
        group = self.groups.create(
            DeliveryGroup(user_id=user_id, service_date=service_date, delivery_slot_id=slot.id)
        )
        for member in [*meals, *orders]:
            member.delivery_slot = slot
            member.delivery_group = group
        self.db.flush()
        return group

    def join_group(self, group: DeliveryGroup, order: CurryOrder) -> None:
        """Add an order to an existing group and move it onto the group's slot."""
        order.delivery_slot = group.delivery_slot
        order.delivery_group = group
        self.db.flush()

    def prune_group(self, group_id: str) -> None:
        """Dissolve a group that has dropped below two members."""
        group = self.groups.find_with_members(group_id)
        if group is not None and group.member_count < MIN_GROUP_SIZE:
            self._dissolve(group)
            self._logger.info(f"Dissolved undersized delivery group {group_id}")

    @staticmethod
    def _check_groupable(meals: List[MealInstance], orders: List[CurryOrder]) -> None:
        for meal in meals:
            if meal.is_paused:
                raise ConflictError("Paused meals cannot be grouped", {"meal_instance_id": meal.id})
            if meal.delivery_group_id is not None:
                raise ConflictError(
                    "Meal already belongs to a delivery group",
                    {"meal_instance_id": meal.id, "delivery_group_id": meal.delivery_group_id},
                )
        for order in orders:
            if order.status != CurryOrderStatus.ORDERED:
                raise ConflictError("Only open curry orders can be grouped", {"curry_order_id": order.id})
            if order.delivery_group_id is not None:
                raise ConflictError(
                    "Curry order already belongs to a delivery group",
                    {"curry_order_id": order.id, "delivery_group_id": order.delivery_group_id},
                )

    def _get_owned(self, user_id: str, group_id: str) -> DeliveryGroup:
        group = self.groups.find_with_members(group_id)
        if group is None:
            raise NotFoundError(self.groups.resource_name, group_id)
        if group.user_id != user_id:
            raise ForbiddenError(resource_type="Delivery group", resource_id=group_id)
        return group

    def _dissolve(self, group: DeliveryGroup) -> None:
        self.groups.detach_members(group.id)
        self.groups.delete(group)
