"""
Pytest configuration and shared fixtures for person_crud tests.

This module provides:
- Mock motor collection/cursor fixtures
- Sample Person documents
- A real MongoDB (testcontainers) for integration tests
"""

import os
from datetime import datetime, timezone
from typing import Any, Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from person_crud.observability import get_metrics_collector
from person_crud.repositories import PersonRepository
from person_crud.services import PersonService

# ============================================================================
# MOCK MONGODB FIXTURES
# ============================================================================


def make_cursor(docs: List[Dict[str, Any]]) -> MagicMock:
    """Create a mock motor cursor whose chainable helpers return itself."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=docs)
    return cursor


@pytest.fixture
def mock_people_collection() -> MagicMock:
    """Create a mock motor collection for people."""
    collection = MagicMock()
    collection.name = "people"
    collection.find = MagicMock(return_value=make_cursor([]))
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=ObjectId()))
    collection.insert_many = AsyncMock(
        side_effect=lambda docs, **kwargs: MagicMock(inserted_ids=[ObjectId() for _ in docs])
    )
    collection.replace_one = AsyncMock(return_value=MagicMock(matched_count=1, modified_count=1))
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.find_one_and_delete = AsyncMock(return_value=None)
    collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=0))
    collection.count_documents = AsyncMock(return_value=0)
    collection.aggregate = MagicMock(return_value=make_cursor([]))
    collection.create_index = AsyncMock(return_value="email_unique")
    return collection


@pytest.fixture
def person_repository(mock_people_collection: MagicMock) -> PersonRepository:
    """Create a PersonRepository over the mock collection."""
    return PersonRepository(mock_people_collection)


@pytest.fixture
def person_service(person_repository: PersonRepository) -> PersonService:
    """Create a PersonService over the mock repository."""
    return PersonService(person_repository)


# ============================================================================
# TEST DATA FACTORIES
# ============================================================================


@pytest.fixture
def john_doc() -> Dict[str, Any]:
    """Stored document for John Doe, as the driver would return it."""
    created = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    return {
        "_id": ObjectId("65a1b2c3d4e5f60718293a4b"),
        "name": "John Doe",
        "age": 30,
        "favoriteFoods": ["pizza", "pasta"],
        "email": "john@example.com",
        "createdAt": created,
        "updatedAt": created,
        "isActive": True,
    }


@pytest.fixture(autouse=True)
def reset_metrics():
    """Start every test with an empty metrics collector."""
    get_metrics_collector().reset()
    yield


# ============================================================================
# ENVIRONMENT VARIABLES
# ============================================================================


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch):
    """Clear connection settings before each test."""
    for var in (
        "MONGO_URI",
        "DB_NAME",
        "MONGO_MAX_POOL_SIZE",
        "MONGO_MIN_POOL_SIZE",
        "MONGO_SERVER_SELECTION_TIMEOUT_MS",
        "MONGO_SOCKET_TIMEOUT_MS",
    ):
        monkeypatch.delenv(var, raising=False)
    yield


# ============================================================================
# TESTCONTAINERS FIXTURES (Real MongoDB for Integration Tests)
# ============================================================================


@pytest.fixture(scope="session")
def mongodb_container():
    """
    Start a MongoDB container for integration tests.

    Session-scoped: the container starts once and is reused. Skips when
    testcontainers is missing or Docker is not reachable.
    """
    try:
        from testcontainers.mongodb import MongoDbContainer
    except ImportError:
        pytest.skip("testcontainers not installed. Install with: pip install -e '.[test]'")

    container = MongoDbContainer("mongo:7.0")
    try:
        container.start()
    except Exception as e:  # docker missing or not running
        pytest.skip(f"MongoDB container unavailable: {e}")

    yield container
    container.stop()


@pytest.fixture
def mongodb_connection_string(mongodb_container) -> str:
    """Connection string for the test container."""
    return mongodb_container.get_connection_url()


@pytest.fixture
async def real_mongo_db(mongodb_connection_string):
    """
    A real database, unique per test, dropped afterwards.
    """
    from motor.motor_asyncio import AsyncIOMotorClient

    client = AsyncIOMotorClient(mongodb_connection_string, tz_aware=True)
    db_name = f"test_people_{os.getpid()}_{ObjectId()}"
    db = client[db_name]

    yield db

    await client.drop_database(db_name)
    client.close()


@pytest.fixture
async def real_person_service(real_mongo_db) -> PersonService:
    """A PersonService on the real database, with its indexes created."""
    return await PersonService.create(real_mongo_db)
