"""
Delivery Group Repository Module.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from tiffin.models.curry import CurryOrder
from tiffin.models.delivery import DeliveryGroup
from tiffin.models.meal import MealInstance
from tiffin.repositories.base import BaseRepository


class DeliveryGroupRepository(BaseRepository[DeliveryGroup]):
    resource_name = "Delivery group"

    def __init__(self, db_session):
        super().__init__(DeliveryGroup, db_session)

    def find_with_members(self, group_id: str) -> Optional[DeliveryGroup]:
        stmt = (
            select(DeliveryGroup)
            .options(
                selectinload(DeliveryGroup.meal_instances),
                selectinload(DeliveryGroup.curry_orders),
            )
            .where(DeliveryGroup.id == group_id)
        )
        return self.db.execute(stmt).unique().scalar_one_or_none()

    def list_for_user(self, user_id: str, service_date: Optional[date] = None) -> List[DeliveryGroup]:
        stmt = (
            select(DeliveryGroup)
            .options(
                selectinload(DeliveryGroup.meal_instances),
                selectinload(DeliveryGroup.curry_orders),
            )
            .where(DeliveryGroup.user_id == user_id)
            .order_by(DeliveryGroup.service_date.desc(), DeliveryGroup.created_at)
        )
        if service_date is not None:
            stmt = stmt.where(DeliveryGroup.service_date == service_date)
        return list(self.db.execute(stmt).unique().scalars().all())

    def detach_members(self, group_id: str) -> None:
        """
        Clear the group reference on every member.

        delivery_slot_id is left untouched: members keep the slot they
        were last assigned.
        """
        for model in (MealInstance, CurryOrder):
            self.db.flush()
            stmt = (
                update(model)
                .where(model.delivery_group_id == group_id)
                .values(delivery_group_id=None)
                .execution_options(synchronize_session=False)
            )
            self.db.execute(stmt)
        self.db.expire_all()
