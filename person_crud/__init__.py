"""
person_crud - MongoDB CRUD walkthrough

A Person collection on MongoDB: schema, connection manager, service layer,
demo driver and seed script.
"""

# Configuration
from .config import DatabaseConfig
# Connection management
from .database import DatabaseConnection, database
# Errors
from .exceptions import (ConfigurationError, InitializationError, InvalidArgumentError,
                         NotConnectedError, PersonCrudError, PersonNotFoundError)
# Schema
from .models import Person, PersonStats, PersonSummary
# Data access
from .repositories import PersonRepository
from .services import PersonService

__version__ = "0.1.0"

__all__ = [
    # Config
    "DatabaseConfig",
    # Database
    "DatabaseConnection",
    "database",
    # Models
    "Person",
    "PersonSummary",
    "PersonStats",
    # Data access
    "PersonRepository",
    "PersonService",
    # Errors
    "PersonCrudError",
    "ConfigurationError",
    "InitializationError",
    "NotConnectedError",
    "InvalidArgumentError",
    "PersonNotFoundError",
]
