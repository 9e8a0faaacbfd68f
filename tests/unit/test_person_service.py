"""
Unit tests for PersonService.

The motor collection is mocked; tests check argument validation, the
documents and filters sent to the driver, and what comes back.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError

from person_crud.exceptions import InvalidArgumentError, PersonNotFoundError
from person_crud.models import Person, PersonStats, PersonSummary
from person_crud.observability import get_metrics_collector
from person_crud.services import PersonService


def assert_no_driver_calls(collection):
    for method in (
        "find",
        "find_one",
        "insert_one",
        "insert_many",
        "replace_one",
        "find_one_and_update",
        "find_one_and_delete",
        "delete_many",
    ):
        getattr(collection, method).assert_not_called()


class TestCreate:
    """Test service construction and create operations."""

    @pytest.mark.asyncio
    async def test_create_ensures_email_index(self, mock_people_collection):
        db = MagicMock()
        db.__getitem__.return_value = mock_people_collection

        service = await PersonService.create(db)

        db.__getitem__.assert_called_once_with("people")
        mock_people_collection.create_index.assert_awaited_once_with(
            "email", unique=True, sparse=True, name="email_unique"
        )
        assert service.repository.collection is mock_people_collection

    @pytest.mark.asyncio
    async def test_create_and_save_person(self, person_service, mock_people_collection):
        oid = ObjectId()
        mock_people_collection.insert_one.return_value = MagicMock(inserted_id=oid)

        person = await person_service.create_and_save_person(
            {"name": "John Doe", "age": 30, "favorite_foods": ["pizza", "pasta"]}
        )

        assert person.id == str(oid)
        assert person.created_at == person.updated_at
        doc = mock_people_collection.insert_one.call_args[0][0]
        assert doc["name"] == "John Doe"
        assert doc["favoriteFoods"] == ["pizza", "pasta"]
        assert "email" not in doc

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", [{}, {"age": 30}, {"name": ""}, None, "John Doe"])
    async def test_create_without_name_rejected(self, person_service, mock_people_collection, data):
        with pytest.raises(InvalidArgumentError) as exc_info:
            await person_service.create_and_save_person(data)

        assert exc_info.value.context["argument"] == "name"
        assert_no_driver_calls(mock_people_collection)

    @pytest.mark.asyncio
    async def test_create_with_invalid_field_rejected(self, person_service, mock_people_collection):
        with pytest.raises(ValidationError):
            await person_service.create_and_save_person({"name": "John Doe", "age": 150})

        mock_people_collection.insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_email_propagates(self, person_service, mock_people_collection):
        mock_people_collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

        with pytest.raises(DuplicateKeyError):
            await person_service.create_and_save_person(
                {"name": "John Doe", "email": "john@example.com"}
            )

    @pytest.mark.asyncio
    async def test_create_many_people(self, person_service, mock_people_collection):
        people = await person_service.create_many_people(
            [{"name": "Mary Johnson", "age": 25}, {"name": "Bob Smith", "age": 35}]
        )

        assert [p.name for p in people] == ["Mary Johnson", "Bob Smith"]
        assert all(p.id for p in people)
        args, kwargs = mock_people_collection.insert_many.call_args
        assert len(args[0]) == 2
        assert kwargs["ordered"] is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", [[], None, {"name": "John Doe"}])
    async def test_create_many_requires_non_empty_list(
        self, person_service, mock_people_collection, data
    ):
        with pytest.raises(InvalidArgumentError):
            await person_service.create_many_people(data)

        assert_no_driver_calls(mock_people_collection)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", [[{"name": "Jane Smith"}, "oops"], [None]])
    async def test_create_many_rejects_non_mapping_items(
        self, person_service, mock_people_collection, data
    ):
        with pytest.raises(InvalidArgumentError) as exc_info:
            await person_service.create_many_people(data)

        assert exc_info.value.argument == "array_of_people"
        assert_no_driver_calls(mock_people_collection)

    @pytest.mark.asyncio
    async def test_create_many_validates_all_before_insert(
        self, person_service, mock_people_collection
    ):
        with pytest.raises(ValidationError):
            await person_service.create_many_people([{"name": "Good Name"}, {"name": "X"}])

        mock_people_collection.insert_many.assert_not_called()


class TestRead:
    """Test find operations."""

    @pytest.mark.asyncio
    async def test_find_people_by_name(self, person_service, mock_people_collection, john_doc):
        mock_people_collection.find.return_value.to_list.return_value = [john_doc]

        people = await person_service.find_people_by_name("John Doe")

        assert len(people) == 1
        assert isinstance(people[0], Person)
        mock_people_collection.find.assert_called_once_with({"name": "John Doe"}, None)

    @pytest.mark.asyncio
    async def test_find_people_by_name_no_match(self, person_service):
        assert await person_service.find_people_by_name("Nobody Here") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", None, 42])
    async def test_find_people_by_name_invalid(self, person_service, mock_people_collection, name):
        with pytest.raises(InvalidArgumentError):
            await person_service.find_people_by_name(name)

        assert_no_driver_calls(mock_people_collection)

    @pytest.mark.asyncio
    async def test_find_one_by_food(self, person_service, mock_people_collection, john_doc):
        mock_people_collection.find_one.return_value = john_doc

        person = await person_service.find_one_by_food("pizza")

        assert person.name == "John Doe"
        mock_people_collection.find_one.assert_awaited_once_with({"favoriteFoods": "pizza"})

    @pytest.mark.asyncio
    async def test_find_one_by_food_none(self, person_service):
        assert await person_service.find_one_by_food("sushi") is None

    @pytest.mark.asyncio
    async def test_find_one_by_food_invalid(self, person_service, mock_people_collection):
        with pytest.raises(InvalidArgumentError):
            await person_service.find_one_by_food("")

        assert_no_driver_calls(mock_people_collection)

    @pytest.mark.asyncio
    async def test_find_person_by_id(self, person_service, mock_people_collection, john_doc):
        mock_people_collection.find_one.return_value = john_doc

        person = await person_service.find_person_by_id(str(john_doc["_id"]))

        assert person.id == str(john_doc["_id"])
        mock_people_collection.find_one.assert_awaited_once_with({"_id": john_doc["_id"]})

    @pytest.mark.asyncio
    async def test_find_person_by_unknown_id(self, person_service):
        assert await person_service.find_person_by_id(str(ObjectId())) is None

    @pytest.mark.asyncio
    async def test_find_person_by_id_missing(self, person_service, mock_people_collection):
        with pytest.raises(InvalidArgumentError):
            await person_service.find_person_by_id(None)

        assert_no_driver_calls(mock_people_collection)

    @pytest.mark.asyncio
    async def test_get_all_people(self, person_service, mock_people_collection, john_doc):
        mock_people_collection.find.return_value.to_list.return_value = [john_doc, john_doc]

        people = await person_service.get_all_people()

        assert len(people) == 2
        mock_people_collection.find.assert_called_once_with({}, None)

    @pytest.mark.asyncio
    async def test_find_active_people(self, person_service, mock_people_collection):
        await person_service.find_active_people()
        mock_people_collection.find.assert_called_once_with({"isActive": True}, None)

    @pytest.mark.asyncio
    async def test_find_people_by_food(self, person_service, mock_people_collection):
        await person_service.find_people_by_food("burrito")
        mock_people_collection.find.assert_called_once_with({"favoriteFoods": "burrito"}, None)

    @pytest.mark.asyncio
    async def test_find_people_by_age_range(self, person_service, mock_people_collection):
        await person_service.find_people_by_age_range(20, 30)
        mock_people_collection.find.assert_called_once_with(
            {"age": {"$gte": 20, "$lte": 30}}, None
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bounds", [(30, 20), ("20", 30), (20, None), (True, 30)])
    async def test_find_people_by_age_range_invalid(
        self, person_service, mock_people_collection, bounds
    ):
        with pytest.raises(InvalidArgumentError):
            await person_service.find_people_by_age_range(*bounds)

        assert_no_driver_calls(mock_people_collection)


class TestChainedQuery:
    """Test the sorted, limited, projected burrito query."""

    @pytest.mark.asyncio
    async def test_query_shape(self, person_service, mock_people_collection):
        cursor = mock_people_collection.find.return_value
        mock_people_collection.find.return_value = cursor

        await person_service.find_burrito_lovers()

        mock_people_collection.find.assert_called_once_with(
            {"favoriteFoods": "burrito"}, {"name": 1, "favoriteFoods": 1}
        )
        cursor.sort.assert_called_once_with([("name", 1)])
        cursor.limit.assert_called_once_with(2)
        cursor.to_list.assert_awaited_once_with(length=2)

    @pytest.mark.asyncio
    async def test_results_have_no_age(self, person_service, mock_people_collection):
        docs = [
            {"_id": ObjectId(), "name": "Alice Brown", "favoriteFoods": ["burrito"]},
            {"_id": ObjectId(), "name": "Bob Smith", "favoriteFoods": ["burrito", "tacos"]},
        ]
        mock_people_collection.find.return_value.to_list.return_value = docs

        people = await person_service.find_burrito_lovers()

        assert [p.name for p in people] == ["Alice Brown", "Bob Smith"]
        assert all(isinstance(p, PersonSummary) for p in people)
        assert not hasattr(people[0], "age")

    @pytest.mark.asyncio
    async def test_other_food(self, person_service, mock_people_collection):
        await person_service.find_burrito_lovers("tacos")
        assert mock_people_collection.find.call_args[0][0] == {"favoriteFoods": "tacos"}


class TestStats:
    """Test get_stats."""

    @pytest.mark.asyncio
    async def test_stats(self, person_service, mock_people_collection):
        mock_people_collection.count_documents.side_effect = [10, 9]
        mock_people_collection.aggregate.return_value.to_list.return_value = [
            {"_id": None, "avgAge": 34.5}
        ]

        stats = await person_service.get_stats()

        assert stats == PersonStats(total_people=10, active_people=9, average_age=34.5)
        pipeline = mock_people_collection.aggregate.call_args[0][0]
        assert pipeline[0] == {"$match": {"age": {"$ne": None}}}
        assert pipeline[1]["$group"]["avgAge"] == {"$avg": "$age"}

    @pytest.mark.asyncio
    async def test_stats_empty_collection(self, person_service):
        stats = await person_service.get_stats()
        assert stats.total_people == 0
        assert stats.active_people == 0
        assert stats.average_age == 0.0


class TestUpdate:
    """Test classic and atomic updates."""

    @pytest.mark.asyncio
    async def test_add_hamburger(self, person_service, mock_people_collection, john_doc):
        mock_people_collection.find_one.return_value = john_doc

        person = await person_service.add_hamburger_to_favorites(str(john_doc["_id"]))

        assert person.favorite_foods == ["pizza", "pasta", "hamburger"]
        assert person.updated_at > person.created_at
        filter_, doc = mock_people_collection.replace_one.call_args[0]
        assert filter_ == {"_id": john_doc["_id"]}
        assert doc["favoriteFoods"] == ["pizza", "pasta", "hamburger"]
        assert doc["createdAt"] == john_doc["createdAt"]

    @pytest.mark.asyncio
    async def test_add_hamburger_twice_no_duplicate(
        self, person_service, mock_people_collection, john_doc
    ):
        john_doc["favoriteFoods"] = ["pizza", "hamburger"]
        mock_people_collection.find_one.return_value = john_doc

        person = await person_service.add_hamburger_to_favorites(str(john_doc["_id"]))

        assert person.favorite_foods == ["pizza", "hamburger"]

    @pytest.mark.asyncio
    async def test_update_fields(self, person_service, mock_people_collection, john_doc):
        mock_people_collection.find_one.return_value = john_doc

        person = await person_service.update_person_classic(
            str(john_doc["_id"]),
            {"name": "Johnny Doe", "age": 31, "is_active": False, "add_to_favorites": ["sushi"]},
        )

        assert person.name == "Johnny Doe"
        assert person.age == 31
        assert person.is_active is False
        assert person.favorite_foods[-1] == "sushi"

    @pytest.mark.asyncio
    async def test_update_empty_name_ignored(self, person_service, mock_people_collection, john_doc):
        mock_people_collection.find_one.return_value = john_doc

        person = await person_service.update_person_classic(str(john_doc["_id"]), {"name": ""})

        assert person.name == "John Doe"

    @pytest.mark.asyncio
    async def test_update_unknown_person(self, person_service, mock_people_collection):
        person_id = str(ObjectId())

        with pytest.raises(PersonNotFoundError) as exc_info:
            await person_service.add_hamburger_to_favorites(person_id)

        assert exc_info.value.context["person_id"] == person_id
        mock_people_collection.replace_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_person_deleted_before_write(
        self, person_service, mock_people_collection, john_doc
    ):
        mock_people_collection.find_one.return_value = john_doc
        mock_people_collection.replace_one.return_value = MagicMock(matched_count=0)

        with pytest.raises(PersonNotFoundError):
            await person_service.add_hamburger_to_favorites(str(john_doc["_id"]))

    @pytest.mark.asyncio
    async def test_update_invalid_value(self, person_service, mock_people_collection, john_doc):
        mock_people_collection.find_one.return_value = john_doc

        with pytest.raises(ValidationError):
            await person_service.update_person_classic(str(john_doc["_id"]), {"age": 200})

        mock_people_collection.replace_one.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "person_id,updates",
        [
            (None, {}),
            ("65a1b2c3d4e5f60718293a4b", None),
            ("65a1b2c3d4e5f60718293a4b", {"add_to_favorites": "hamburger"}),
        ],
    )
    async def test_update_invalid_arguments(
        self, person_service, mock_people_collection, person_id, updates
    ):
        with pytest.raises(InvalidArgumentError):
            await person_service.update_person_classic(person_id, updates)

        assert_no_driver_calls(mock_people_collection)

    @pytest.mark.asyncio
    async def test_remove_food(self, person_service, mock_people_collection, john_doc):
        mock_people_collection.find_one.return_value = john_doc

        person = await person_service.remove_food_from_favorites(str(john_doc["_id"]), "pizza")

        assert person.favorite_foods == ["pasta"]
        mock_people_collection.replace_one.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_find_one_and_update_age(self, person_service, mock_people_collection, john_doc):
        mock_people_collection.find_one_and_update.return_value = {**john_doc, "age": 20}

        person = await person_service.find_one_and_update_age("John Doe")

        assert person.age == 20
        filter_, update = mock_people_collection.find_one_and_update.call_args[0]
        assert filter_ == {"name": "John Doe"}
        assert update["$set"]["age"] == 20
        assert "updatedAt" in update["$set"]
        kwargs = mock_people_collection.find_one_and_update.call_args[1]
        assert kwargs["return_document"] is True

    @pytest.mark.asyncio
    async def test_find_one_and_update_age_no_match(self, person_service):
        assert await person_service.find_one_and_update_age("Nobody Here", 40) is None

    @pytest.mark.asyncio
    async def test_find_one_and_update_age_out_of_range(
        self, person_service, mock_people_collection
    ):
        with pytest.raises(ValidationError):
            await person_service.find_one_and_update_age("John Doe", 150)

        mock_people_collection.find_one_and_update.assert_not_called()

    @pytest.mark.asyncio
    async def test_find_one_and_update_age_requires_name(
        self, person_service, mock_people_collection
    ):
        with pytest.raises(InvalidArgumentError):
            await person_service.find_one_and_update_age("", 30)

        assert_no_driver_calls(mock_people_collection)


class TestDelete:
    """Test delete operations."""

    @pytest.mark.asyncio
    async def test_delete_person_by_id(self, person_service, mock_people_collection, john_doc):
        mock_people_collection.find_one_and_delete.return_value = john_doc

        removed = await person_service.delete_person_by_id(str(john_doc["_id"]))

        assert removed.name == "John Doe"
        mock_people_collection.find_one_and_delete.assert_awaited_once_with(
            {"_id": john_doc["_id"]}
        )

    @pytest.mark.asyncio
    async def test_delete_unknown_id(self, person_service):
        assert await person_service.delete_person_by_id(str(ObjectId())) is None

    @pytest.mark.asyncio
    async def test_delete_many_by_name(self, person_service, mock_people_collection):
        mock_people_collection.delete_many.return_value = MagicMock(deleted_count=2)

        result = await person_service.delete_many_by_name("Mary Johnson")

        assert result.deleted_count == 2
        mock_people_collection.delete_many.assert_awaited_once_with({"name": "Mary Johnson"})

    @pytest.mark.asyncio
    async def test_delete_many_requires_name(self, person_service, mock_people_collection):
        with pytest.raises(InvalidArgumentError):
            await person_service.delete_many_by_name("")

        assert_no_driver_calls(mock_people_collection)

    @pytest.mark.asyncio
    async def test_clear_all(self, person_service, mock_people_collection):
        await person_service.clear_all()
        mock_people_collection.delete_many.assert_awaited_once_with({})


class TestMetrics:
    """Service calls are recorded by the metrics collector."""

    @pytest.mark.asyncio
    async def test_success_recorded(self, person_service):
        await person_service.get_all_people()

        collector = get_metrics_collector()
        assert collector.get_operation_count("person.find_all") == 1
        assert collector.get_error_count("person.find_all") == 0

    @pytest.mark.asyncio
    async def test_failure_recorded(self, person_service):
        with pytest.raises(InvalidArgumentError):
            await person_service.find_people_by_name("")

        collector = get_metrics_collector()
        assert collector.get_operation_count("person.find_by_name") == 1
        assert collector.get_error_count("person.find_by_name") == 1

    @pytest.mark.asyncio
    async def test_driver_error_propagates(self, person_service, mock_people_collection):
        from pymongo.errors import ServerSelectionTimeoutError

        mock_people_collection.count_documents = AsyncMock(
            side_effect=ServerSelectionTimeoutError("no servers")
        )

        with pytest.raises(ServerSelectionTimeoutError):
            await person_service.get_stats()

        assert get_metrics_collector().get_error_count("person.stats") == 1
