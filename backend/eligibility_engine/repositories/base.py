from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from eligibility_engine.db.base import Base

# Type variable for the model class
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic base repository providing common CRUD operations.

    Domain repositories extend this with their own queries.

    Type Parameters:
        ModelType: The SQLAlchemy model class this repository manages
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize the repository.

        Args:
            model: The SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    async def create(self, **kwargs: Any) -> ModelType:
        """
        Create a new entity.

        Args:
            **kwargs: Field values for the new entity

        Returns:
            The created entity with generated ID
        """
        instance = self.model(**kwargs)
        self.db.add(instance)
        await self.db.flush()
        await self.db.refresh(instance)
        return instance

    async def get_by_id(self, id: str) -> Optional[ModelType]:
        """
        Retrieve an entity by its ID.

        Returns:
            The entity if found, None otherwise
        """
        stmt = select(self.model).where(self.model.id == id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        order_by: Optional[Any] = None,
    ) -> List[ModelType]:
        """
        Retrieve all entities with pagination.

        Args:
            skip: Number of records to skip (offset)
            limit: Maximum number of records to return
            order_by: Optional ordering clause

        Returns:
            List of entities
        """
        stmt = select(self.model)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        stmt = stmt.offset(skip).limit(limit)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def update(self, id: str, **kwargs: Any) -> Optional[ModelType]:
        """
        Update an entity by ID.

        Args:
            id: The ID of the entity to update
            **kwargs: Fields to update with new values

        Returns:
            The updated entity if found, None otherwise
        """
        stmt = update(self.model).where(self.model.id == id).values(**kwargs)
        await self.db.execute(stmt)
        await self.db.flush()
        return await self.get_by_id(id)

    async def delete(self, id: str) -> bool:
        """
        Delete an entity by ID.

        Returns:
            True if entity was deleted, False if not found
        """
        stmt = delete(self.model).where(self.model.id == id)
        result = await self.db.execute(stmt)
        await self.db.flush()
        return result.rowcount > 0

    async def exists(self, id: str) -> bool:
        stmt = select(self.model.id).where(self.model.id == id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def count(self, **filters: Any) -> int:
        """
        Count entities matching the given filters.

        Args:
            **filters: Field equality filters

        Returns:
            Count of matching entities
        """
        stmt = select(func.count()).select_from(self.model)
        for field, value in filters.items():
            if hasattr(self.model, field):
                stmt = stmt.where(getattr(self.model, field) == value)

        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def find_by(self, **filters: Any) -> List[ModelType]:
        """
        Find entities matching the given field filters.

        Args:
            **filters: Field equality filters (e.g., active=True)

        Returns:
            List of matching entities
        """
        stmt = select(self.model)
        for field, value in filters.items():
            if hasattr(self.model, field):
                stmt = stmt.where(getattr(self.model, field) == value)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_one_by(self, **filters: Any) -> Optional[ModelType]:
        """
        Find a single entity matching the given filters.

        Returns:
            The first matching entity, or None if not found
        """
        stmt = select(self.model)
        for field, value in filters.items():
            if hasattr(self.model, field):
                stmt = stmt.where(getattr(self.model, field) == value)

        result = await self.db.execute(stmt.limit(1))
        return result.scalar_one_or_none()
