"""
Person schema.

Person is the single entity stored by this project. Fields use snake_case in
Python and camelCase in MongoDB (favoriteFoods, createdAt, ...) through a
pydantic alias generator; the document id is exposed as a string and stored
as an ObjectId under ``_id``.

Validation happens on construction and on every attribute assignment, so a
record that fails the schema never reaches the driver.
"""

from datetime import datetime, timezone
from typing import Annotated, Any

from bson import ObjectId
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    TypeAdapter,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from ..constants import (
    AGE_MAX,
    AGE_MIN,
    EMAIL_PATTERN,
    FOOD_MAX_LENGTH,
    FOOD_MIN_LENGTH,
    MAX_FAVORITE_FOODS,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
    NAME_PATTERN,
)

PersonName = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True,
        min_length=NAME_MIN_LENGTH,
        max_length=NAME_MAX_LENGTH,
        pattern=NAME_PATTERN,
    ),
]
Age = Annotated[int, Field(ge=AGE_MIN, le=AGE_MAX)]
FoodName = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=FOOD_MIN_LENGTH, max_length=FOOD_MAX_LENGTH),
]
Email = Annotated[
    str,
    StringConstraints(strip_whitespace=True, to_lower=True, pattern=EMAIL_PATTERN),
]

# Used by atomic updates that bypass model construction
age_adapter: TypeAdapter = TypeAdapter(Age | None)


def utcnow() -> datetime:
    """Current UTC time truncated to the millisecond precision BSON stores."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _stringify_id(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    return value


def to_object_id(value: Any) -> Any:
    """Convert a string id to an ObjectId when it is one, else pass it through."""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


class _Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    id: str | None = Field(default=None, alias="_id")

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> Any:
        return _stringify_id(value)

    @classmethod
    def from_document(cls, doc: dict[str, Any] | None):
        """Create a model from a MongoDB document (None passes through)."""
        if doc is None:
            return None
        return cls.model_validate(doc)


class Person(_Document):
    """
    A person and their favorite foods.

    Example:
        person = Person(name="John Doe", age=30, favorite_foods=["pizza"])
        person.add_favorite_food("hamburger")
        doc = person.to_document()
        # {"name": "John Doe", "age": 30, "favoriteFoods": ["pizza", "hamburger"], ...}
    """

    name: PersonName
    age: Age | None = None
    favorite_foods: list[FoodName] = Field(default_factory=list, max_length=MAX_FAVORITE_FOODS)
    email: Email | None = None
    created_at: datetime = Field(default_factory=utcnow, frozen=True)
    updated_at: datetime = Field(default_factory=lambda data: data.get("created_at") or utcnow())
    is_active: bool = True

    @field_validator("created_at", "updated_at")
    @classmethod
    def _timestamps_are_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @computed_field
    @property
    def full_name_with_age(self) -> str:
        """Display name with the age in parentheses. Never stored."""
        return f"{self.name} ({self.age or 'Age not specified'})"

    def touch(self) -> None:
        """Refresh updated_at; it never moves backwards."""
        now = utcnow()
        if now < self.updated_at:
            now = self.updated_at
        self.updated_at = now

    def add_favorite_food(self, food: str) -> bool:
        """
        Append a food unless it is already a favorite.

        Returns:
            True if the list changed
        """
        food = food.strip()
        if food in self.favorite_foods:
            return False
        # Reassign so the list is revalidated (item length, list size)
        self.favorite_foods = [*self.favorite_foods, food]
        return True

    def remove_favorite_food(self, food: str) -> bool:
        """
        Remove the first occurrence of a food.

        Returns:
            True if the list changed
        """
        food = food.strip()
        if food not in self.favorite_foods:
            return False
        foods = list(self.favorite_foods)
        foods.remove(food)
        self.favorite_foods = foods
        return True

    def to_document(self, include_id: bool = False) -> dict[str, Any]:
        """
        Convert to the MongoDB document shape.

        A missing email is left out entirely so the sparse unique index on
        email ignores it.

        Args:
            include_id: Whether to include ``_id`` (as an ObjectId)
        """
        doc = self.model_dump(by_alias=True, exclude={"id", "full_name_with_age"})
        if doc.get("email") is None:
            doc.pop("email", None)
        if include_id and self.id is not None:
            doc["_id"] = to_object_id(self.id)
        return doc


class PersonSummary(_Document):
    """Projection of a Person holding only its name and favorite foods."""

    name: str
    favorite_foods: list[str] = Field(default_factory=list)


class PersonStats(BaseModel):
    """Collection-wide counts and the average of the known ages."""

    total_people: int
    active_people: int
    average_age: float = 0.0
