#!/usr/bin/env python3
"""
Seed script.

Clears the people collection, inserts ten sample people and prints a few
sample query results.

    python -m person_crud.seed
"""

import asyncio
import logging
import sys

from dotenv import load_dotenv

from .constants import PERSON_COLLECTION
from .database import database
from .observability import configure_logging, set_correlation_id, set_operation_context
from .services import PersonService

logger = logging.getLogger(__name__)

SAMPLE_PEOPLE = [
    {
        "name": "John Smith",
        "age": 28,
        "favorite_foods": ["pizza", "burgers", "pasta"],
        "email": "john.smith@example.com",
        "is_active": True,
    },
    {
        "name": "Emma Johnson",
        "age": 32,
        "favorite_foods": ["sushi", "salad", "burrito"],
        "email": "emma.johnson@example.com",
        "is_active": True,
    },
    {
        "name": "Michael Brown",
        "age": 45,
        "favorite_foods": ["steak", "potatoes", "burrito"],
        "email": "michael.brown@example.com",
        "is_active": True,
    },
    {
        "name": "Sarah Davis",
        "age": 22,
        "favorite_foods": ["tacos", "ice cream", "pizza"],
        "email": "sarah.davis@example.com",
        "is_active": True,
    },
    {
        "name": "Robert Wilson",
        "age": 38,
        "favorite_foods": ["chicken", "rice", "vegetables"],
        "email": "robert.wilson@example.com",
        "is_active": False,
    },
    {
        "name": "Mary Thompson",
        "age": 29,
        "favorite_foods": ["pasta", "wine", "cheese"],
        "email": "mary.thompson@example.com",
        "is_active": True,
    },
    {
        "name": "David Miller",
        "age": 51,
        "favorite_foods": ["seafood", "soup", "bread"],
        "email": "david.miller@example.com",
        "is_active": True,
    },
    {
        "name": "Lisa Anderson",
        "age": 26,
        "favorite_foods": ["burrito", "nachos", "guacamole"],
        "email": "lisa.anderson@example.com",
        "is_active": True,
    },
    {
        "name": "James Taylor",
        "age": 33,
        "favorite_foods": ["bbq", "corn", "beans"],
        "email": "james.taylor@example.com",
        "is_active": True,
    },
    {
        "name": "Mary Johnson",
        "age": 41,
        "favorite_foods": ["soup", "sandwich", "fruit"],
        "email": "mary.johnson@example.com",
        "is_active": True,
    },
]


async def seed_database(service: PersonService) -> int:
    """
    Replace the collection's contents with SAMPLE_PEOPLE.

    Returns:
        Number of people inserted
    """
    await service.clear_all()
    print("🗑️  Cleared existing data")

    created = await service.create_many_people(SAMPLE_PEOPLE)
    print(f"✅ Seeded database with {len(created)} sample people")

    print("\n📊 Sample Queries:")
    print(f"   Total people in DB: {len(await service.get_all_people())}")
    print(f"   Active people: {len(await service.find_active_people())}")
    print(f"   People aged 20-30: {len(await service.find_people_by_age_range(20, 30))}")
    print(f"   Burrito lovers: {len(await service.find_people_by_food('burrito'))}")

    return len(created)


async def main() -> int:
    """
    Connect, seed and disconnect.

    Returns:
        Process exit status (0 on success, 1 on error)
    """
    set_correlation_id()
    set_operation_context(collection_name=PERSON_COLLECTION)
    print("🌱 Seeding database with initial data...")

    try:
        db = await database.connect()
        service = await PersonService.create(db)
        await seed_database(service)
    except Exception as e:
        logger.exception(f"❌ Error seeding database: {e}")
        return 1
    finally:
        await database.disconnect()

    print("\n🎉 Database seeded successfully!")
    return 0


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    configure_logging()
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
