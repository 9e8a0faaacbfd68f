"""
Service layer.
"""

from .person_service import PersonService

__all__ = ["PersonService"]
