"""
MongoDB Repository Implementation

Implements the Repository interface on top of a motor collection. Documents
are converted to and from pydantic models with ``from_document`` /
``to_document``.
"""

import logging
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from pymongo import ReturnDocument
from pymongo.results import DeleteResult

from ..models.person import to_object_id
from .base import Repository

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)
M = TypeVar("M", bound=BaseModel)


class MongoRepository(Repository[T], Generic[T]):
    """
    MongoDB implementation of the Repository interface.

    Example:
        people = MongoRepository(db.people, Person)
        person = await people.add(Person(name="John Doe"))
        again = await people.get(person.id)
    """

    def __init__(
        self,
        collection: Any,  # AsyncIOMotorCollection
        model_class: type[T],
    ):
        """
        Initialize the MongoDB repository.

        Args:
            collection: motor collection holding the documents
            model_class: pydantic model with from_document/to_document
        """
        self._collection = collection
        self._model_class = model_class

    @property
    def collection(self) -> Any:
        return self._collection

    def _to_entity(self, doc: dict[str, Any] | None) -> T | None:
        """Convert a MongoDB document to an entity."""
        if doc is None:
            return None
        return self._model_class.from_document(doc)

    async def get(self, id: Any) -> T | None:
        """Get entity by ID."""
        doc = await self._collection.find_one({"_id": to_object_id(id)})
        return self._to_entity(doc)

    async def find(
        self,
        filter: dict[str, Any] | None = None,
        skip: int = 0,
        limit: int = 0,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[T]:
        """Find entities matching a filter."""
        docs = await self._fetch(filter, skip=skip, limit=limit, sort=sort)
        return [self._to_entity(doc) for doc in docs]

    async def find_projected(
        self,
        filter: dict[str, Any],
        projection: dict[str, Any],
        model_class: type[M],
        limit: int = 0,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[M]:
        """
        Find documents returning only the projected fields.

        Args:
            filter: MongoDB filter
            projection: Fields to include (or exclude)
            model_class: Model the partial documents are parsed into
            limit: Maximum documents to return (0 means no limit)
            sort: List of (field, direction) tuples
        """
        docs = await self._fetch(filter, limit=limit, sort=sort, projection=projection)
        return [model_class.from_document(doc) for doc in docs]

    async def _fetch(
        self,
        filter: dict[str, Any] | None,
        skip: int = 0,
        limit: int = 0,
        sort: list[tuple[str, int]] | None = None,
        projection: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        cursor = self._collection.find(filter or {}, projection)

        if sort:
            cursor = cursor.sort(sort)
        if skip > 0:
            cursor = cursor.skip(skip)
        if limit > 0:
            cursor = cursor.limit(limit)

        return await cursor.to_list(length=limit or None)

    async def find_one(self, filter: dict[str, Any]) -> T | None:
        """Find a single entity matching a filter."""
        doc = await self._collection.find_one(filter)
        return self._to_entity(doc)

    async def add(self, entity: T) -> T:
        """Insert a new entity and set its ID."""
        result = await self._collection.insert_one(entity.to_document())
        entity.id = str(result.inserted_id)

        logger.debug(f"Added {self._model_class.__name__} with id={entity.id}")
        return entity

    async def add_many(self, entities: list[T]) -> list[T]:
        """Insert multiple entities; the first failure aborts the batch."""
        docs = [entity.to_document() for entity in entities]

        result = await self._collection.insert_many(docs, ordered=True)
        for entity, inserted_id in zip(entities, result.inserted_ids, strict=True):
            entity.id = str(inserted_id)

        logger.debug(f"Added {len(entities)} {self._model_class.__name__} entities")
        return entities

    async def replace(self, entity: T) -> bool:
        """Write the entity over the stored document with the same ID."""
        result = await self._collection.replace_one(
            {"_id": to_object_id(entity.id)}, entity.to_document()
        )
        return result.matched_count > 0

    async def find_one_and_update(self, filter: dict[str, Any], update: dict[str, Any]) -> T | None:
        """Apply ``update`` to the first match and return the post-update entity."""
        doc = await self._collection.find_one_and_update(
            filter, update, return_document=ReturnDocument.AFTER
        )
        return self._to_entity(doc)

    async def delete(self, id: Any) -> T | None:
        """Delete an entity by ID and return what was removed."""
        doc = await self._collection.find_one_and_delete({"_id": to_object_id(id)})
        return self._to_entity(doc)

    async def delete_many(self, filter: dict[str, Any]) -> DeleteResult:
        """
        Delete multiple documents matching a filter.

        Returns:
            The driver's DeleteResult (see ``deleted_count``)
        """
        return await self._collection.delete_many(filter)

    async def count(self, filter: dict[str, Any] | None = None) -> int:
        """Count entities matching a filter."""
        return await self._collection.count_documents(filter or {})

    async def aggregate(self, pipeline: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """
        Run an aggregation pipeline.

        Args:
            pipeline: MongoDB aggregation pipeline

        Returns:
            List of result documents
        """
        cursor = self._collection.aggregate(pipeline)
        return await cursor.to_list(length=None)
