#!/usr/bin/env python3
"""
Demo driver.

Connects to MongoDB and walks through every PersonService operation once, in
order, printing what happens along the way.

    python -m person_crud.demo
"""

import asyncio
import logging
import sys

from dotenv import load_dotenv

from .constants import PERSON_COLLECTION
from .database import database
from .observability import (
    configure_logging,
    get_metrics_collector,
    set_correlation_id,
    set_operation_context,
)
from .services import PersonService

logger = logging.getLogger(__name__)

RULE = "=" * 50

MANY_PEOPLE = [
    {
        "name": "Jane Smith",
        "age": 25,
        "favorite_foods": ["sushi", "salad"],
        "email": "jane@example.com",
    },
    {
        "name": "Bob Johnson",
        "age": 35,
        "favorite_foods": ["burger", "fries", "burrito"],
        "email": "bob@example.com",
    },
    {
        "name": "Alice Brown",
        "age": 28,
        "favorite_foods": ["tacos", "burrito", "nachos"],
        "email": "alice@example.com",
    },
    {
        "name": "Mary Wilson",
        "age": 40,
        "favorite_foods": ["steak", "potatoes"],
        "email": "mary@example.com",
    },
    # Second Mary, for the delete-many step
    {
        "name": "Mary Johnson",
        "age": 32,
        "favorite_foods": ["salad", "yogurt"],
    },
]


async def demonstrate_all_operations(service: PersonService) -> None:
    """Run every service operation once, in a fixed order."""
    print("\n📚 DEMONSTRATING ALL CRUD OPERATIONS")
    print("-" * 40)

    print("\n1. 📝 CREATE AND SAVE A SINGLE PERSON")
    person1 = await service.create_and_save_person(
        {
            "name": "John Doe",
            "age": 30,
            "favorite_foods": ["pizza", "pasta"],
            "email": "john@example.com",
        }
    )
    print(f"   Created: {person1.name} (ID: {person1.id})")

    print("\n2. 📝 CREATE MULTIPLE PEOPLE")
    people = await service.create_many_people(MANY_PEOPLE)
    print(f"   Created {len(people)} people")

    print("\n3. 🔍 FIND PEOPLE BY NAME")
    johns = await service.find_people_by_name("John Doe")
    print(f'   Found {len(johns)} person(s) named "John Doe"')

    print("\n4. 🔍 FIND ONE BY FAVORITE FOOD")
    pizza_lover = await service.find_one_by_food("pizza")
    if pizza_lover:
        print(f"   Pizza lover found: {pizza_lover.name}")

    print("\n5. 🔍 FIND PERSON BY ID")
    found = await service.find_person_by_id(person1.id)
    if found:
        print(f"   Found by ID: {found.full_name_with_age}")

    print("\n6. ✏️ CLASSIC UPDATE: ADD HAMBURGER TO FAVORITES")
    updated = await service.add_hamburger_to_favorites(person1.id)
    print(f"   Updated favorites: {', '.join(updated.favorite_foods)}")

    print("\n7. ✏️ FIND ONE AND UPDATE AGE")
    aged = await service.find_one_and_update_age("Jane Smith", 26)
    if aged:
        print(f"   Updated {aged.name}'s age to {aged.age}")

    print("\n8. 🗑️ DELETE ONE BY ID")
    temp_person = await service.create_and_save_person(
        {"name": "Temp Person", "age": 99, "favorite_foods": ["test food"]}
    )
    deleted = await service.delete_person_by_id(temp_person.id)
    if deleted:
        print(f"   Deleted: {deleted.name}")

    print("\n9. 🗑️ DELETE MANY BY NAME")
    delete_result = await service.delete_many_by_name("Mary")
    print(f'   Deleted {delete_result.deleted_count} person(s) named "Mary"')

    print("\n10. 🔗 CHAINED QUERY: FIND BURRITO LOVERS")
    burrito_lovers = await service.find_burrito_lovers()
    print(f"   Found {len(burrito_lovers)} burrito lover(s)")
    for index, person in enumerate(burrito_lovers, start=1):
        print(f"   {index}. {person.name} likes: {', '.join(person.favorite_foods)}")

    print("\n📊 DATABASE STATISTICS")
    stats = await service.get_stats()
    print(f"   Total People: {stats.total_people}")
    print(f"   Active People: {stats.active_people}")
    print(f"   Average Age: {stats.average_age:.1f}")

    print("\n👥 ALL REMAINING PEOPLE")
    for index, person in enumerate(await service.get_all_people(), start=1):
        foods = ", ".join(person.favorite_foods) or "None"
        print(f"   {index}. {person.name}, Age: {person.age or 'N/A'}, Foods: {foods}")


def print_metrics_summary() -> None:
    summary = get_metrics_collector().get_summary()["summary"]
    if not summary:
        return
    print("\n⏱️  OPERATION TIMINGS")
    for name, metric in summary.items():
        print(
            f"   {name}: {metric['count']}x, avg {metric['avg_duration_ms']:.2f}ms"
            f", errors {metric['error_count']}"
        )


async def main() -> int:
    """
    Connect, run the demonstration and disconnect.

    Returns:
        Process exit status (0 on success, 1 on error)
    """
    set_correlation_id()
    set_operation_context(collection_name=PERSON_COLLECTION)
    print("🚀 Starting MongoDB CRUD Application")
    print(RULE)

    try:
        db = await database.connect()
        service = await PersonService.create(db)
        await demonstrate_all_operations(service)
    except Exception as e:
        logger.exception(f"❌ Application error: {e}")
        return 1
    finally:
        await database.disconnect()

    print(RULE)
    print("✅ All operations completed successfully!")
    print_metrics_summary()
    return 0


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    configure_logging()
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
