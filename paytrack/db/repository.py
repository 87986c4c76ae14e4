"""Base repository class with common CRUD operations."""

from typing import Generic, TypeVar, Type, Optional, List, Any, Sequence
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paytrack.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository providing common CRUD operations for all models.

    This class implements the repository pattern, providing a clean
    abstraction over database operations with transaction support.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def create(self, **kwargs) -> ModelType:
        """
        Create a new record.

        Args:
            **kwargs: Field values for the new record

        Returns:
            Created model instance
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def create_many(self, rows: Sequence[dict[str, Any]]) -> List[ModelType]:
        """
        Create several records in a single flush.

        Args:
            rows: One dict of field values per record

        Returns:
            Created model instances, in input order
        """
        instances = [self.model(**row) for row in rows]
        self.session.add_all(instances)
        await self.session.flush()
        return instances

    async def get_by_id(self, id: int) -> Optional[ModelType]:
        """Get a record by primary key."""
        result = await self.session.execute(
            select(self.model).where(self.model.id == id)  # type: ignore
        )
        return result.scalar_one_or_none()

    async def get_by_field(self, field_name: str, value: Any) -> Optional[ModelType]:
        """
        Get a record by a specific field value.

        Args:
            field_name: Name of the field to search
            value: Value to search for

        Returns:
            Model instance or None if not found
        """
        field = getattr(self.model, field_name)
        result = await self.session.execute(select(self.model).where(field == value))
        return result.scalar_one_or_none()

    async def filter(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        **filters,
    ) -> List[ModelType]:
        """
        Filter records by field values, newest id first.

        Filters with a ``None`` value are ignored so optional query
        parameters can be passed straight through.

        Args:
            limit: Maximum number of records to return
            offset: Number of records to skip
            **filters: Field name and value pairs

        Returns:
            List of matching model instances
        """
        query = select(self.model)
        query = self._apply_filters(query, filters)
        query = query.order_by(self.model.id.desc())  # type: ignore
        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    def _apply_filters(self, query, filters: dict):
        for field_name, value in filters.items():
            if value is None:
                continue
            query = query.where(getattr(self.model, field_name) == value)
        return query

    async def update(self, id: int, **kwargs) -> Optional[ModelType]:
        """
        Update a record by ID.

        Args:
            id: Record ID
            **kwargs: Fields to update with their new values

        Returns:
            Updated model instance or None if not found
        """
        await self.session.execute(
            update(self.model).where(self.model.id == id).values(**kwargs)  # type: ignore
        )
        await self.session.flush()
        return await self.get_by_id(id)

    async def count(self, **filters) -> int:
        """Count records matching the given equality filters."""
        query = select(func.count(self.model.id))  # type: ignore
        query = self._apply_filters(query, filters)

        result = await self.session.execute(query)
        return result.scalar() or 0
