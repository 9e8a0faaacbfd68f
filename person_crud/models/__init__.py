"""
Person models and the field types they are built from.
"""

from .person import Person, PersonStats, PersonSummary, age_adapter, to_object_id, utcnow

__all__ = [
    "Person",
    "PersonSummary",
    "PersonStats",
    "age_adapter",
    "to_object_id",
    "utcnow",
]
