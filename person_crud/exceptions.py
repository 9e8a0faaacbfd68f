"""
Custom exceptions for person_crud.

Every error raised by the package itself derives from PersonCrudError, which
keeps RuntimeError as its base so callers catching RuntimeError keep working.
Driver errors (pymongo) and schema errors (pydantic) are never wrapped: they
are logged where they happen and re-raised unchanged.
"""

from typing import Any, Dict, Optional


class PersonCrudError(RuntimeError):
    """
    Base exception for person_crud errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (person_id,
                 collection_name, etc.)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class ConfigurationError(PersonCrudError):
    """
    Raised when configuration is invalid or missing.

    Attributes:
        message: Error message
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value


class InitializationError(PersonCrudError):
    """
    Raised when the MongoDB connection cannot be established.

    Attributes:
        message: Error message
        mongo_uri: MongoDB connection URI (if available)
        db_name: Database name (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        mongo_uri: Optional[str] = None,
        db_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if mongo_uri:
            context["mongo_uri"] = mongo_uri
        if db_name:
            context["db_name"] = db_name
        super().__init__(message, context=context)
        self.mongo_uri = mongo_uri
        self.db_name = db_name


class NotConnectedError(PersonCrudError):
    """Raised when the database is used before connect() succeeded."""


class InvalidArgumentError(PersonCrudError, ValueError):
    """
    Raised by service methods when an argument is missing or has the wrong type.

    Always raised before any network call is made.

    Attributes:
        argument: Name of the offending argument
    """

    def __init__(
        self,
        message: str,
        argument: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if argument:
            context["argument"] = argument
        super().__init__(message, context=context)
        self.argument = argument


class PersonNotFoundError(PersonCrudError, LookupError):
    """
    Raised when a read-modify-write update targets an unknown id.

    Attributes:
        person_id: The id that matched no document
    """

    def __init__(self, person_id: Any, context: Optional[Dict[str, Any]] = None) -> None:
        context = context or {}
        context["person_id"] = str(person_id)
        super().__init__(f'Person with ID "{person_id}" not found', context=context)
        self.person_id = person_id
