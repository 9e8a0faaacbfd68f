"""
Abstract Repository Pattern

Defines the data access interface the services are written against. Entities
are pydantic models that know how to convert themselves to and from stored
documents.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


class Repository(ABC, Generic[T]):
    """
    Abstract repository interface for data access.

    Each method maps to exactly one round trip to the data store.

    Example:
        class PersonRepository(MongoRepository[Person]):
            async def find_by_email(self, email: str) -> Person | None:
                return await self.find_one({"email": email})
    """

    @abstractmethod
    async def get(self, id: Any) -> T | None:
        """
        Get a single entity by ID.

        Args:
            id: Entity ID

        Returns:
            Entity if found, None otherwise
        """

    @abstractmethod
    async def find(
        self,
        filter: dict[str, Any] | None = None,
        skip: int = 0,
        limit: int = 0,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[T]:
        """
        Find entities matching a filter.

        Args:
            filter: MongoDB-style filter dictionary
            skip: Number of documents to skip
            limit: Maximum documents to return (0 means no limit)
            sort: List of (field, direction) tuples

        Returns:
            List of matching entities
        """

    @abstractmethod
    async def find_one(self, filter: dict[str, Any]) -> T | None:
        """
        Find a single entity matching a filter.

        Returns:
            First matching entity or None
        """

    @abstractmethod
    async def add(self, entity: T) -> T:
        """
        Insert a new entity.

        Returns:
            The same entity with its generated id set
        """

    @abstractmethod
    async def add_many(self, entities: list[T]) -> list[T]:
        """
        Insert several entities in one ordered batch.

        Returns:
            The same entities with their generated ids set
        """

    @abstractmethod
    async def replace(self, entity: T) -> bool:
        """
        Overwrite the stored document with the entity's current state.

        Returns:
            True if a document with the entity's id existed
        """

    @abstractmethod
    async def find_one_and_update(self, filter: dict[str, Any], update: dict[str, Any]) -> T | None:
        """
        Atomically update the first match and return its new state.

        Returns:
            The updated entity, or None if nothing matched
        """

    @abstractmethod
    async def delete(self, id: Any) -> T | None:
        """
        Delete an entity by ID.

        Returns:
            The removed entity, or None if not found
        """

    @abstractmethod
    async def delete_many(self, filter: dict[str, Any]) -> Any:
        """Delete every entity matching a filter and return the driver's result."""

    @abstractmethod
    async def count(self, filter: dict[str, Any] | None = None) -> int:
        """Count entities matching a filter."""
