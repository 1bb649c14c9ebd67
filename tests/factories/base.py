"""Base factory for async SQLAlchemy models."""

from typing import Any, TypeVar, Generic

import factory
from sqlalchemy.ext.asyncio import AsyncSession


T = TypeVar("T")


class AsyncSQLAlchemyModelFactory(factory.Factory, Generic[T]):
    """Base factory for async SQLAlchemy models."""

    class Meta:
        abstract = True

    @classmethod
    async def create_async(cls, session: AsyncSession, **kwargs: Any) -> T:
        """Build, persist and commit a model instance."""
        instance = cls.build(**kwargs)
        session.add(instance)
        await session.commit()
        return instance

    @classmethod
    async def create_batch_async(
        cls, session: AsyncSession, size: int, **kwargs: Any
    ) -> list[T]:
        """Build, persist and commit multiple model instances."""
        instances = cls.build_batch(size, **kwargs)
        session.add_all(instances)
        await session.commit()
        return instances
