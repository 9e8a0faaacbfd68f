"""
Repository layer.

Usage:
    from person_crud.repositories import PersonRepository

    people = PersonRepository.from_database(db)
    await people.ensure_indexes()
    john = await people.find_one({"name": "John Doe"})
"""

from .base import Repository
from .mongo import MongoRepository
from .person import PersonRepository

__all__ = [
    "Repository",
    "MongoRepository",
    "PersonRepository",
]
