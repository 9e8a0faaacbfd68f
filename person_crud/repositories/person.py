"""
Person repository.

Binds MongoRepository to the ``people`` collection and owns the indexes the
Person schema relies on.
"""

import logging
from typing import Any

from ..constants import PERSON_COLLECTION
from ..models.person import Person
from .mongo import MongoRepository

logger = logging.getLogger(__name__)

EMAIL_INDEX_NAME = "email_unique"


class PersonRepository(MongoRepository[Person]):
    """Repository over the Person collection."""

    def __init__(self, collection: Any):
        super().__init__(collection, Person)

    @classmethod
    def from_database(cls, db: Any, collection_name: str = PERSON_COLLECTION) -> "PersonRepository":
        """Build a repository from a motor database handle."""
        return cls(db[collection_name])

    async def ensure_indexes(self) -> None:
        """
        Create the sparse unique index on email.

        Documents without an email are skipped by a sparse index, which is why
        Person.to_document() omits a missing email instead of storing null.
        """
        await self._collection.create_index(
            "email", unique=True, sparse=True, name=EMAIL_INDEX_NAME
        )
        logger.debug(f"Ensured index '{EMAIL_INDEX_NAME}' on {PERSON_COLLECTION}")
