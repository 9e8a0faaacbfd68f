"""
Person service.

Every CRUD operation on people goes through PersonService. Each method checks
its arguments (raising InvalidArgumentError before touching the network),
makes one repository call, logs the outcome and hands back the driver's
result. Failures are logged where they happen and re-raised unchanged.

The read-modify-write updates (update_person_classic and the helpers built on
it) are the only methods that make two round trips. Nothing guards the gap
between the read and the write: two concurrent updates of the same person can
lose one of the writes.
"""

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError
from pymongo import ASCENDING
from pymongo.errors import PyMongoError
from pymongo.results import DeleteResult

from ..constants import (
    CHAINED_QUERY_LIMIT,
    CLASSIC_UPDATE_FOOD,
    DEFAULT_CHAINED_QUERY_FOOD,
    DEFAULT_UPDATED_AGE,
)
from ..exceptions import InvalidArgumentError, PersonNotFoundError
from ..models.person import Person, PersonStats, PersonSummary, age_adapter, utcnow
from ..observability import get_logger, timed_operation
from ..repositories.person import PersonRepository

logger = get_logger(__name__)

_SCALAR_UPDATE_FIELDS = ("age", "email", "is_active")

_AVERAGE_AGE_PIPELINE = [
    {"$match": {"age": {"$ne": None}}},
    {"$group": {"_id": None, "avgAge": {"$avg": "$age"}}},
]


def _invalid_argument(operation: str, message: str, argument: str) -> InvalidArgumentError:
    error = InvalidArgumentError(message, argument=argument)
    logger.error(
        f"❌ Error in {operation}: {message}",
        extra={"operation": operation, "error_type": "InvalidArgumentError"},
    )
    return error


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


class PersonService:
    """
    CRUD operations for Person documents.

    Example:
        service = await PersonService.create(db)
        john = await service.create_and_save_person({"name": "John Doe", "age": 30})
        await service.add_hamburger_to_favorites(john.id)
    """

    def __init__(self, repository: PersonRepository) -> None:
        self._people = repository

    @classmethod
    async def create(cls, db: Any) -> "PersonService":
        """Build a service on a motor database and make sure its indexes exist."""
        repository = PersonRepository.from_database(db)
        await repository.ensure_indexes()
        return cls(repository)

    @property
    def repository(self) -> PersonRepository:
        return self._people

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @timed_operation("person.create_and_save")
    async def create_and_save_person(self, person_data: Mapping[str, Any]) -> Person:
        """
        Build a Person from ``person_data`` and insert it.

        Args:
            person_data: Field values; ``name`` is required

        Returns:
            The persisted person with its generated id and timestamps

        Raises:
            InvalidArgumentError: If person_data has no name
            pydantic.ValidationError: If a field breaks the schema
            pymongo.errors.DuplicateKeyError: If the email is already used
        """
        if not isinstance(person_data, Mapping) or not person_data.get("name"):
            raise _invalid_argument(
                "create_and_save_person", "Name is required to create a person", "name"
            )

        logger.info("📝 Creating new person...")
        try:
            person = Person.model_validate(dict(person_data))
            saved = await self._people.add(person)
        except (ValidationError, PyMongoError) as e:
            logger.error(f"❌ Error saving person: {e}", extra={"error_type": type(e).__name__})
            raise

        logger.info(f"✅ Person created successfully: {saved.name}")
        return saved

    @timed_operation("person.create_many")
    async def create_many_people(self, array_of_people: list[Mapping[str, Any]]) -> list[Person]:
        """
        Insert several people in one ordered batch.

        Every record is validated before anything is sent; a driver error on
        one document aborts the rest of the batch.

        Returns:
            The persisted people, in input order
        """
        if not isinstance(array_of_people, list) or not array_of_people:
            raise _invalid_argument(
                "create_many_people", "array_of_people must be a non-empty list", "array_of_people"
            )

        if not all(isinstance(data, Mapping) for data in array_of_people):
            raise _invalid_argument(
                "create_many_people",
                "every item of array_of_people must be a mapping",
                "array_of_people",
            )

        logger.info(f"📝 Creating {len(array_of_people)} people...")
        try:
            people = [Person.model_validate(dict(data)) for data in array_of_people]
            created = await self._people.add_many(people)
        except (ValidationError, PyMongoError) as e:
            logger.error(
                f"❌ Error creating multiple people: {e}", extra={"error_type": type(e).__name__}
            )
            raise

        logger.info(f"✅ Successfully created {len(created)} people")
        return created

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @timed_operation("person.find_by_name")
    async def find_people_by_name(self, name: str) -> list[Person]:
        """Return every person whose name matches exactly (possibly none)."""
        if not _is_text(name):
            raise _invalid_argument("find_people_by_name", "Valid name string is required", "name")

        logger.info(f'🔍 Searching for people named: "{name}"')
        try:
            people = await self._people.find({"name": name})
        except PyMongoError as e:
            logger.error(f"❌ Error finding people by name: {e}")
            raise

        logger.info(f'✅ Found {len(people)} person(s) named "{name}"')
        return people

    @timed_operation("person.find_one_by_food")
    async def find_one_by_food(self, food: str) -> Person | None:
        """Return the first person with ``food`` among their favorites, or None."""
        if not _is_text(food):
            raise _invalid_argument("find_one_by_food", "Valid food string is required", "food")

        logger.info(f'🔍 Searching for person who likes: "{food}"')
        try:
            person = await self._people.find_one({"favoriteFoods": food})
        except PyMongoError as e:
            logger.error(f"❌ Error finding person by food: {e}")
            raise

        if person:
            logger.info(f"✅ Found person: {person.name}")
        else:
            logger.info(f'No person found who likes "{food}"')
        return person

    @timed_operation("person.find_by_food")
    async def find_people_by_food(self, food: str) -> list[Person]:
        """Return every person with ``food`` among their favorites."""
        if not _is_text(food):
            raise _invalid_argument("find_people_by_food", "Valid food string is required", "food")

        try:
            people = await self._people.find({"favoriteFoods": food})
        except PyMongoError as e:
            logger.error(f"❌ Error finding people by food: {e}")
            raise

        logger.info(f'✅ Found {len(people)} person(s) who like "{food}"')
        return people

    @timed_operation("person.find_by_id")
    async def find_person_by_id(self, person_id: Any) -> Person | None:
        """
        Look a person up by id.

        An id that matches nothing, including one that is not a valid
        ObjectId, yields None rather than an error.
        """
        if not person_id:
            raise _invalid_argument("find_person_by_id", "person_id is required", "person_id")

        logger.info(f'🔍 Searching for person with ID: "{person_id}"')
        try:
            person = await self._people.get(person_id)
        except PyMongoError as e:
            logger.error(f"❌ Error finding person by ID: {e}")
            raise

        if person:
            logger.info(f"✅ Found person: {person.name}")
        else:
            logger.info(f'No person found with ID "{person_id}"')
        return person

    @timed_operation("person.find_all")
    async def get_all_people(self) -> list[Person]:
        logger.info("📋 Retrieving all people...")
        try:
            people = await self._people.find({})
        except PyMongoError as e:
            logger.error(f"❌ Error getting all people: {e}")
            raise

        logger.info(f"✅ Retrieved {len(people)} person(s)")
        return people

    @timed_operation("person.find_active")
    async def find_active_people(self) -> list[Person]:
        try:
            people = await self._people.find({"isActive": True})
        except PyMongoError as e:
            logger.error(f"❌ Error finding active people: {e}")
            raise

        logger.info(f"✅ Found {len(people)} active person(s)")
        return people

    @timed_operation("person.find_by_age_range")
    async def find_people_by_age_range(self, min_age: int, max_age: int) -> list[Person]:
        """Return people whose age lies in [min_age, max_age]."""
        for argument, value in (("min_age", min_age), ("max_age", max_age)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise _invalid_argument(
                    "find_people_by_age_range", f"{argument} must be an integer", argument
                )
        if min_age > max_age:
            raise _invalid_argument(
                "find_people_by_age_range",
                f"min_age ({min_age}) cannot be greater than max_age ({max_age})",
                "min_age",
            )

        try:
            people = await self._people.find({"age": {"$gte": min_age, "$lte": max_age}})
        except PyMongoError as e:
            logger.error(f"❌ Error finding people by age range: {e}")
            raise

        logger.info(f"✅ Found {len(people)} person(s) aged {min_age}-{max_age}")
        return people

    @timed_operation("person.find_burrito_lovers")
    async def find_burrito_lovers(self, food: str = DEFAULT_CHAINED_QUERY_FOOD) -> list[PersonSummary]:
        """
        Chained query: people who like ``food``, sorted by name, at most two.

        Only name and favorite foods are returned; age is projected out.
        """
        if not _is_text(food):
            raise _invalid_argument("find_burrito_lovers", "Valid food string is required", "food")

        logger.info(f'🔍 Searching for people who like "{food}"...')
        try:
            people = await self._people.find_projected(
                {"favoriteFoods": food},
                {"name": 1, "favoriteFoods": 1},
                PersonSummary,
                limit=CHAINED_QUERY_LIMIT,
                sort=[("name", ASCENDING)],
            )
        except PyMongoError as e:
            logger.error(f"❌ Error in chained query: {e}")
            raise

        logger.info(f'✅ Found {len(people)} person(s) who like "{food}"')
        return people

    @timed_operation("person.stats")
    async def get_stats(self) -> PersonStats:
        """Count all and active people and average the ages that are set."""
        try:
            total_count = await self._people.count()
            active_count = await self._people.count({"isActive": True})
            average = await self._people.aggregate(_AVERAGE_AGE_PIPELINE)
        except PyMongoError as e:
            logger.error(f"❌ Error getting stats: {e}")
            raise

        average_age = average[0].get("avgAge") if average else None
        return PersonStats(
            total_people=total_count,
            active_people=active_count,
            average_age=average_age or 0.0,
        )

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    @timed_operation("person.update_classic")
    async def update_person_classic(self, person_id: Any, updates: Mapping[str, Any]) -> Person:
        """
        Classic update: find by id, edit in memory, save.

        Recognised keys in ``updates``: ``name`` (applied when non-empty),
        ``age``, ``email``, ``is_active`` and ``add_to_favorites`` (a list of
        foods appended when not already present).

        Raises:
            InvalidArgumentError: If person_id or updates are missing/malformed
            PersonNotFoundError: If no person has this id
            pydantic.ValidationError: If an update breaks the schema
        """
        if not person_id:
            raise _invalid_argument("update_person_classic", "person_id is required", "person_id")
        if not isinstance(updates, Mapping):
            raise _invalid_argument("update_person_classic", "updates must be a mapping", "updates")
        foods = updates.get("add_to_favorites")
        if foods is not None and (isinstance(foods, str) or not isinstance(foods, list | tuple)):
            raise _invalid_argument(
                "update_person_classic", "add_to_favorites must be a list", "add_to_favorites"
            )

        logger.info(f'✏️ Classic update for person ID: "{person_id}"')

        def apply(person: Person) -> None:
            if updates.get("name"):
                person.name = updates["name"]
            for field in _SCALAR_UPDATE_FIELDS:
                if field in updates:
                    setattr(person, field, updates[field])
            for food in foods or ():
                person.add_favorite_food(food)

        person = await self._read_modify_write("update_person_classic", person_id, apply)
        logger.info(f"✅ Person updated: {person.name}")
        return person

    async def add_hamburger_to_favorites(self, person_id: Any) -> Person:
        """Append "hamburger" to a person's favorite foods (no duplicates)."""
        return await self.update_person_classic(
            person_id, {"add_to_favorites": [CLASSIC_UPDATE_FOOD]}
        )

    @timed_operation("person.remove_favorite")
    async def remove_food_from_favorites(self, person_id: Any, food: str) -> Person:
        """Remove one food from a person's favorites via read-modify-write."""
        if not person_id:
            raise _invalid_argument(
                "remove_food_from_favorites", "person_id is required", "person_id"
            )
        if not _is_text(food):
            raise _invalid_argument(
                "remove_food_from_favorites", "Valid food string is required", "food"
            )

        person = await self._read_modify_write(
            "remove_food_from_favorites", person_id, lambda p: p.remove_favorite_food(food)
        )
        logger.info(f'✅ Removed "{food}" from {person.name}\'s favorites')
        return person

    async def _read_modify_write(
        self, operation: str, person_id: Any, mutate: Callable[[Person], Any]
    ) -> Person:
        try:
            person = await self._people.get(person_id)
            if person is None:
                raise PersonNotFoundError(person_id)

            mutate(person)
            person.touch()

            # Deleted between the read and the write
            if not await self._people.replace(person):
                raise PersonNotFoundError(person_id)
        except (PersonNotFoundError, ValidationError, PyMongoError) as e:
            logger.error(
                f"❌ Error in {operation}: {e}",
                extra={"operation": operation, "error_type": type(e).__name__},
            )
            raise
        return person

    @timed_operation("person.find_one_and_update_age")
    async def find_one_and_update_age(
        self, person_name: str, new_age: int | None = DEFAULT_UPDATED_AGE
    ) -> Person | None:
        """
        Atomically set the age of the first person with this name.

        The age is checked against the schema before the update is sent.

        Returns:
            The updated person, or None if nobody has this name
        """
        if not person_name:
            raise _invalid_argument(
                "find_one_and_update_age", "person_name is required", "person_name"
            )

        logger.info(f'✏️ Setting age of "{person_name}" to {new_age}')
        try:
            age = age_adapter.validate_python(new_age)
            person = await self._people.find_one_and_update(
                {"name": person_name},
                {"$set": {"age": age, "updatedAt": utcnow()}},
            )
        except (ValidationError, PyMongoError) as e:
            logger.error(f"❌ Error in findOneAndUpdate: {e}", extra={"error_type": type(e).__name__})
            raise

        if person is None:
            logger.info(f'No person found named "{person_name}"')
            return None

        logger.info(f"✅ Updated {person.name}'s age to {person.age}")
        return person

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    @timed_operation("person.delete_by_id")
    async def delete_person_by_id(self, person_id: Any) -> Person | None:
        """Remove a person by id and return the removed record (None if absent)."""
        if not person_id:
            raise _invalid_argument("delete_person_by_id", "person_id is required", "person_id")

        logger.info(f'🗑️ Deleting person with ID: "{person_id}"')
        try:
            removed = await self._people.delete(person_id)
        except PyMongoError as e:
            logger.error(f"❌ Error deleting person: {e}")
            raise

        if removed is None:
            logger.info(f'No person found with ID "{person_id}"')
            return None

        logger.info(f"✅ Deleted person: {removed.name}")
        return removed

    @timed_operation("person.delete_many_by_name")
    async def delete_many_by_name(self, name: str) -> DeleteResult:
        """
        Remove every person whose name matches exactly.

        Returns:
            The driver's DeleteResult; ``deleted_count`` holds the count
        """
        if not _is_text(name):
            raise _invalid_argument("delete_many_by_name", "Name is required for deletion", "name")

        logger.info(f'🗑️ Deleting all people named: "{name}"')
        try:
            result = await self._people.delete_many({"name": name})
        except PyMongoError as e:
            logger.error(f"❌ Error deleting people: {e}")
            raise

        logger.info(f'✅ Deleted {result.deleted_count} person(s) named "{name}"')
        return result

    @timed_operation("person.clear")
    async def clear_all(self) -> DeleteResult:
        """Delete every person in the collection."""
        try:
            result = await self._people.delete_many({})
        except PyMongoError as e:
            logger.error(f"❌ Error clearing people: {e}")
            raise

        logger.info(f"🗑️ Cleared {result.deleted_count} existing person(s)")
        return result
