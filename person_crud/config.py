"""
Configuration management for person_crud.

Settings come from environment variables (optionally loaded from a .env file
by the entry points) or from direct constructor arguments.
"""

import os

from .constants import (
    DEFAULT_MAX_POOL_SIZE,
    DEFAULT_MIN_POOL_SIZE,
    DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
    DEFAULT_SOCKET_TIMEOUT_MS,
    MIN_TIMEOUT_MS,
)
from .exceptions import ConfigurationError


def _strip_quotes(value: str) -> str:
    """Remove quote characters that often survive copy/paste into .env files."""
    return value.replace('"', "").replace("'", "").strip()


def _int_from_env(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{key} must be an integer", config_key=key, config_value=raw
        ) from e


class DatabaseConfig:
    """
    MongoDB connection configuration.

    Example:
        # Using environment variables
        config = DatabaseConfig.from_env()
        config.validate()

        # Or using direct parameters
        config = DatabaseConfig(mongo_uri="mongodb://localhost:27017", db_name="people")
    """

    def __init__(
        self,
        mongo_uri: str | None = None,
        db_name: str | None = None,
        max_pool_size: int = DEFAULT_MAX_POOL_SIZE,
        min_pool_size: int = DEFAULT_MIN_POOL_SIZE,
        server_selection_timeout_ms: int = DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
        socket_timeout_ms: int = DEFAULT_SOCKET_TIMEOUT_MS,
    ):
        """
        Initialize configuration.

        Args:
            mongo_uri: MongoDB connection URI (quotes are stripped)
            db_name: Database name; when empty the database named in the URI
                is used, falling back to DEFAULT_DB_NAME
            max_pool_size: Maximum connection pool size
            min_pool_size: Minimum connection pool size
            server_selection_timeout_ms: Give up connecting after this long
            socket_timeout_ms: Close idle sockets after this long
        """
        self.mongo_uri = _strip_quotes(mongo_uri) if mongo_uri else ""
        self.db_name = db_name or ""
        self.max_pool_size = max_pool_size
        self.min_pool_size = min_pool_size
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self.socket_timeout_ms = socket_timeout_ms

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """
        Build a configuration from environment variables.

        Reads MONGO_URI, DB_NAME, MONGO_MAX_POOL_SIZE, MONGO_MIN_POOL_SIZE,
        MONGO_SERVER_SELECTION_TIMEOUT_MS and MONGO_SOCKET_TIMEOUT_MS.

        Raises:
            ConfigurationError: If a numeric variable is not an integer
        """
        return cls(
            mongo_uri=os.getenv("MONGO_URI", ""),
            db_name=os.getenv("DB_NAME", ""),
            max_pool_size=_int_from_env("MONGO_MAX_POOL_SIZE", DEFAULT_MAX_POOL_SIZE),
            min_pool_size=_int_from_env("MONGO_MIN_POOL_SIZE", DEFAULT_MIN_POOL_SIZE),
            server_selection_timeout_ms=_int_from_env(
                "MONGO_SERVER_SELECTION_TIMEOUT_MS", DEFAULT_SERVER_SELECTION_TIMEOUT_MS
            ),
            socket_timeout_ms=_int_from_env("MONGO_SOCKET_TIMEOUT_MS", DEFAULT_SOCKET_TIMEOUT_MS),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigurationError: If required configuration is missing or invalid
        """
        if not self.mongo_uri:
            raise ConfigurationError(
                "MONGO_URI is not defined in environment variables",
                config_key="MONGO_URI",
            )

        if self.max_pool_size < 1:
            raise ConfigurationError(
                f"max_pool_size must be >= 1, got {self.max_pool_size}",
                config_key="MONGO_MAX_POOL_SIZE",
                config_value=self.max_pool_size,
            )

        if self.min_pool_size < 1:
            raise ConfigurationError(
                f"min_pool_size must be >= 1, got {self.min_pool_size}",
                config_key="MONGO_MIN_POOL_SIZE",
                config_value=self.min_pool_size,
            )

        if self.min_pool_size > self.max_pool_size:
            raise ConfigurationError(
                f"min_pool_size ({self.min_pool_size}) cannot be greater than "
                f"max_pool_size ({self.max_pool_size})",
                config_key="MONGO_MIN_POOL_SIZE",
                config_value=self.min_pool_size,
            )

        for key, value in (
            ("MONGO_SERVER_SELECTION_TIMEOUT_MS", self.server_selection_timeout_ms),
            ("MONGO_SOCKET_TIMEOUT_MS", self.socket_timeout_ms),
        ):
            if value < MIN_TIMEOUT_MS:
                raise ConfigurationError(
                    f"{key} must be >= {MIN_TIMEOUT_MS}, got {value}",
                    config_key=key,
                    config_value=value,
                )

    @property
    def safe_uri(self) -> str:
        """The connection URI with any password masked, for logging."""
        if "@" not in self.mongo_uri or "://" not in self.mongo_uri:
            return self.mongo_uri
        scheme, rest = self.mongo_uri.split("://", 1)
        credentials, host = rest.rsplit("@", 1)
        user = credentials.split(":", 1)[0]
        return f"{scheme}://{user}:***@{host}"
