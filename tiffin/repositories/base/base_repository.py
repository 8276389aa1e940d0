"""
Base repository with standardized CRUD operations.

Repositories never commit. They add and flush inside the unit of work
opened by the calling service, so every public operation commits or
rolls back as one piece.
"""

from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from tiffin.core.exceptions import NotFoundError
from tiffin.core.logging import get_logger
from tiffin.models.base import BaseModel

logger = get_logger(__name__)

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository providing CRUD helpers for one model.
    """

    resource_name: Optional[str] = None

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    @property
    def _resource(self) -> str:
        return self.resource_name or self.model.__name__

    # ==================== Create Operations ====================

    def create(self, entity: ModelType) -> ModelType:
        """
        Add a new entity and flush so the database assigns defaults.

        IntegrityError from a unique index surfaces here, inside the
        caller's transaction.
        """
        self.db.add(entity)
        self.db.flush()
        logger.debug(f"Created {self.model.__name__} with id: {entity.id}")
        return entity

    # ==================== Read Operations ====================

    def find_by_id(self, entity_id: str, for_update: bool = False) -> Optional[ModelType]:
        stmt = select(self.model).where(self.model.id == entity_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).unique().scalar_one_or_none()

    def get_by_id(self, entity_id: str, for_update: bool = False) -> ModelType:
        """
        Get entity by ID or raise NotFoundError.
        """
        entity = self.find_by_id(entity_id, for_update=for_update)
        if entity is None:
            raise NotFoundError(self._resource, entity_id)
        return entity

    def find_by_ids(self, entity_ids: List[str]) -> List[ModelType]:
        if not entity_ids:
            return []
        stmt = select(self.model).where(self.model.id.in_(entity_ids))
        return list(self.db.execute(stmt).unique().scalars().all())

    def find_by_criteria(
        self,
        criteria: Dict[str, Any],
        order_by: Optional[List[Any]] = None,
        limit: Optional[int] = None,
    ) -> List[ModelType]:
        """
        Find entities by equality criteria.

        Args:
            criteria: Mapping of column name to required value
            order_by: Column expressions to order by
            limit: Maximum rows to return
        """
        stmt = select(self.model).filter_by(**criteria)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.execute(stmt).unique().scalars().all())

    def find_one_by_criteria(self, criteria: Dict[str, Any]) -> Optional[ModelType]:
        results = self.find_by_criteria(criteria, limit=1)
        return results[0] if results else None

    # ==================== Update / Delete ====================

    def update(self, entity: ModelType, data: Dict[str, Any]) -> ModelType:
        for key, value in data.items():
            if not hasattr(entity, key):
                raise AttributeError(f"{self.model.__name__} has no attribute '{key}'")
            setattr(entity, key, value)
        self.db.flush()
        return entity

    def delete(self, entity: ModelType) -> None:
        self.db.delete(entity)
        self.db.flush()
        logger.debug(f"Deleted {self.model.__name__} with id: {entity.id}")
