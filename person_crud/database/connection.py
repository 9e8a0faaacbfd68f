"""
MongoDB connection manager.

Opens one pooled motor client per process, verifies it with a single ping and
keeps track of whether the server is reachable. There is no retry: a failed
connect() is fatal and exits the process with status 1.

Usage:
    from person_crud.database import database

    db = await database.connect()
    ...
    await database.disconnect()
"""

import asyncio
import logging
import signal
import time
from collections.abc import Callable
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import monitoring
from pymongo.errors import PyMongoError

from ..config import DatabaseConfig
from ..constants import DEFAULT_APP_NAME, DEFAULT_DB_NAME
from ..exceptions import ConfigurationError, InitializationError, NotConnectedError
from ..observability import get_logger as get_contextual_logger
from ..observability import log_operation, record_operation

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)

_TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ConnectionEventLogger(monitoring.TopologyListener, monitoring.ServerHeartbeatListener):
    """
    Logs connect, error and disconnect transitions reported by the driver.

    Topology events tell us when the client gains or loses every readable
    server; heartbeat failures are logged as connection errors.
    """

    def __init__(
        self,
        on_connected: Callable[[], None] | None = None,
        on_disconnected: Callable[[], None] | None = None,
    ) -> None:
        self._on_connected = on_connected
        self._on_disconnected = on_disconnected

    def opened(self, event: monitoring.TopologyOpenedEvent) -> None:
        logger.debug(f"Topology {event.topology_id} opened")

    def description_changed(self, event: monitoring.TopologyDescriptionChangedEvent) -> None:
        was_reachable = event.previous_description.has_readable_server()
        is_reachable = event.new_description.has_readable_server()

        if is_reachable and not was_reachable:
            logger.info("📡 MongoDB driver connected to the database")
            if self._on_connected:
                self._on_connected()
        elif was_reachable and not is_reachable:
            logger.warning("🔌 MongoDB driver disconnected from the database")
            if self._on_disconnected:
                self._on_disconnected()

    def closed(self, event: monitoring.TopologyClosedEvent) -> None:
        logger.debug(f"Topology {event.topology_id} closed")

    def started(self, event: monitoring.ServerHeartbeatStartedEvent) -> None:
        pass

    def succeeded(self, event: monitoring.ServerHeartbeatSucceededEvent) -> None:
        pass

    def failed(self, event: monitoring.ServerHeartbeatFailedEvent) -> None:
        host, port = event.connection_id
        logger.error(f"❌ MongoDB connection error ({host}:{port}): {event.reply}")


class DatabaseConnection:
    """
    Manages the MongoDB connection lifecycle.

    Handles connection initialization, status tracking, termination signals
    and shutdown.
    """

    def __init__(self, config: DatabaseConfig | None = None) -> None:
        """
        Initialize the connection manager.

        Args:
            config: Connection settings; read from the environment on
                connect() when omitted
        """
        self._config = config
        self._client: AsyncIOMotorClient | None = None
        self._db: AsyncIOMotorDatabase | None = None
        self._connected: bool = False
        self._signal_loop: asyncio.AbstractEventLoop | None = None

    async def connect(self) -> AsyncIOMotorDatabase:
        """
        Connect to MongoDB or terminate the process.

        Returns:
            The database handle

        Raises:
            SystemExit: With status 1 if configuration is missing/invalid or
                the server cannot be reached within the selection timeout
        """
        try:
            return await self.initialize()
        except (ConfigurationError, InitializationError) as e:
            logger.critical(f"❌ MongoDB connection error: {e}")
            raise SystemExit(1) from e

    async def initialize(self) -> AsyncIOMotorDatabase:
        """
        Open the client, verify it with a ping and install shutdown hooks.

        Raises:
            ConfigurationError: If configuration is missing or invalid
            InitializationError: If the connection cannot be established
        """
        start_time = time.time()

        if self._connected and self._db is not None:
            logger.warning("DatabaseConnection already connected. Skipping re-initialization.")
            return self._db

        config = self._config or DatabaseConfig.from_env()
        config.validate()

        contextual_logger.info(
            "🔌 Connecting to MongoDB...",
            extra={
                "mongo_uri": config.safe_uri,
                "max_pool_size": config.max_pool_size,
                "min_pool_size": config.min_pool_size,
            },
        )

        client: AsyncIOMotorClient | None = None
        try:
            client = AsyncIOMotorClient(
                config.mongo_uri,
                serverSelectionTimeoutMS=config.server_selection_timeout_ms,
                socketTimeoutMS=config.socket_timeout_ms,
                maxPoolSize=config.max_pool_size,
                minPoolSize=config.min_pool_size,
                appname=DEFAULT_APP_NAME,
                tz_aware=True,
                event_listeners=[
                    ConnectionEventLogger(
                        on_connected=self._mark_connected,
                        on_disconnected=self._mark_disconnected,
                    )
                ],
            )

            # Single attempt, bounded by serverSelectionTimeoutMS
            await client.admin.command("ping")

            if config.db_name:
                db = client[config.db_name]
            else:
                db = client.get_default_database(default=DEFAULT_DB_NAME)
        except (PyMongoError, TypeError, ValueError) as e:
            if client is not None:
                client.close()
            duration_ms = (time.time() - start_time) * 1000
            record_operation("connection.connect", duration_ms, success=False)
            contextual_logger.critical(
                "MongoDB connection failed",
                extra={
                    "error_type": type(e).__name__,
                    "error": str(e),
                    "duration_ms": round(duration_ms, 2),
                },
            )
            raise InitializationError(
                f"Failed to connect to MongoDB: {e}",
                mongo_uri=config.safe_uri,
                db_name=config.db_name or None,
                context={"error_type": type(e).__name__},
            ) from e

        self._client = client
        self._db = db
        self._connected = True
        self._install_signal_handlers()

        duration_ms = (time.time() - start_time) * 1000
        record_operation("connection.connect", duration_ms, success=True)
        log_operation(
            contextual_logger,
            "connection.connect",
            level=logging.DEBUG,
            duration_ms=duration_ms,
            db_name=db.name,
        )
        logger.info("✅ MongoDB connected successfully!")
        logger.info(f"📊 Database: {db.name}")
        logger.info(f"👤 Host: {config.safe_uri}")
        return db

    async def disconnect(self) -> None:
        """
        Close the connection if one is open; otherwise do nothing.

        This method is idempotent - it's safe to call multiple times.
        """
        if self._client is None:
            return
        self._close()
        logger.info("🔌 MongoDB connection closed")

    def get_status(self) -> bool:
        """Return True while the client is open and the server reachable."""
        return self._connected

    def get_database(self) -> AsyncIOMotorDatabase:
        """
        Get the connected database handle.

        Raises:
            NotConnectedError: If connect() has not succeeded
        """
        if self._db is None:
            raise NotConnectedError("MongoDB is not connected. Call connect() first.")
        return self._db

    def get_collection(self, name: str) -> Any:
        """Get a collection from the connected database."""
        return self.get_database()[name]

    @property
    def client(self) -> AsyncIOMotorClient | None:
        return self._client

    def _mark_connected(self) -> None:
        if self._client is not None:
            self._connected = True

    def _mark_disconnected(self) -> None:
        self._connected = False

    def _close(self) -> None:
        self._remove_signal_handlers()
        if self._client is not None:
            self._client.close()
        self._client = None
        self._db = None
        self._connected = False

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            for sig in _TERMINATION_SIGNALS:
                loop.add_signal_handler(sig, self._handle_termination, sig)
        except (NotImplementedError, RuntimeError, ValueError) as e:
            # Windows event loops and non-main threads cannot install handlers
            logger.debug(f"Signal handlers not installed: {e}")
            return
        self._signal_loop = loop

    def _remove_signal_handlers(self) -> None:
        if self._signal_loop is None:
            return
        for sig in _TERMINATION_SIGNALS:
            try:
                self._signal_loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                logger.debug(f"Could not remove handler for {sig.name}: {e}")
        self._signal_loop = None

    def _handle_termination(self, sig: signal.Signals) -> None:
        self._close()
        logger.info(f"👋 MongoDB connection closed due to app termination ({sig.name})")
        raise SystemExit(0)


# Shared instance used by the entry points
database = DatabaseConnection()
