"""
Meal Repository Module.

Idempotent materialization of meal instances, guarded pause toggles and
the append-only pause audit trail.
"""

from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import joinedload

from tiffin.core.exceptions import ConfigurationError
from tiffin.models.base import MealItemType
from tiffin.models.meal import MealInstance, PauseRecord
from tiffin.repositories.base import BaseRepository

MEAL_INSTANCE_KEY = ["subscription_id", "service_date", "item_type"]

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class MealInstanceRepository(BaseRepository[MealInstance]):
    resource_name = "Meal"

    def __init__(self, db_session):
        super().__init__(MealInstance, db_session)

    def insert_ignore(self, rows: List[Dict[str, Any]]) -> int:
        """
        Insert rows, silently skipping any whose key already exists.

        Concurrent callers racing on the same (subscription, date, item)
        key both succeed and end up with exactly one row.
        """
        if not rows:
            return 0

        dialect = self.db.get_bind().dialect.name
        insert = _INSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise ConfigurationError(
                f"Idempotent insert is not supported for dialect '{dialect}'",
                config_key="DATABASE_URL",
            )

        self.db.flush()
        stmt = insert(MealInstance).values(rows).on_conflict_do_nothing(
            index_elements=MEAL_INSTANCE_KEY
        )
        result = self.db.execute(stmt)
        return max(result.rowcount or 0, 0)

    def list_for_dates(self, subscription_id: str, dates: Iterable[date]) -> List[MealInstance]:
        item_order = {item: index for index, item in enumerate(MealItemType)}
        stmt = select(MealInstance).where(
            MealInstance.subscription_id == subscription_id,
            MealInstance.service_date.in_(list(dates)),
        )
        rows = list(self.db.execute(stmt).unique().scalars().all())
        return sorted(rows, key=lambda m: (m.service_date, item_order[m.item_type]))

    def find_for_item(self, subscription_id: str, service_date: date, item_type: MealItemType) -> Optional[MealInstance]:
        stmt = select(MealInstance).where(
            MealInstance.subscription_id == subscription_id,
            MealInstance.service_date == service_date,
            MealInstance.item_type == item_type,
        )
        return self.db.execute(stmt).unique().scalar_one_or_none()

    def find_with_owner(self, instance_ids: Iterable[str]) -> List[MealInstance]:
        """Instances by id with their subscription loaded for ownership checks."""
        stmt = (
            select(MealInstance)
            .options(joinedload(MealInstance.subscription))
            .where(MealInstance.id.in_(list(instance_ids)))
        )
        return list(self.db.execute(stmt).unique().scalars().all())

    def set_paused(self, instance_ids: List[str], paused: bool) -> int:
        """
        Flip is_paused only on rows currently in the opposite state.

        Returns the number of rows that actually changed.
        """
        if not instance_ids:
            return 0
        self.db.flush()
        stmt = (
            update(MealInstance)
            .where(
                MealInstance.id.in_(instance_ids),
                MealInstance.is_paused == (not paused),
            )
            .values(is_paused=paused)
            .execution_options(synchronize_session=False)
        )
        changed = self.db.execute(stmt).rowcount
        self.db.expire_all()
        return changed


class PauseRecordRepository(BaseRepository[PauseRecord]):
    resource_name = "Pause record"

    def __init__(self, db_session):
        super().__init__(PauseRecord, db_session)

    def list_for_subscription(self, subscription_id: str, meal_date: Optional[date] = None) -> List[PauseRecord]:
        criteria: Dict[str, Any] = {"subscription_id": subscription_id}
        if meal_date is not None:
            criteria["meal_date"] = meal_date
        return self.find_by_criteria(criteria, order_by=[PauseRecord.paused_at, PauseRecord.created_at])
